"""Banking models."""

from haven.infrastructure.persistence.sqlalchemy.models.banking.account_balance_model import (  # NOQA: E501
    AccountBalanceModel,
)
from haven.infrastructure.persistence.sqlalchemy.models.banking.bank_account_model import (  # NOQA: E501
    BankAccountModel,
)
from haven.infrastructure.persistence.sqlalchemy.models.banking.connection_model import (  # NOQA: E501
    ConnectionModel,
)
from haven.infrastructure.persistence.sqlalchemy.models.banking.financial_transaction_model import (  # NOQA: E501
    FinancialTransactionModel,
)

__all__ = [
    "AccountBalanceModel",
    "BankAccountModel",
    "ConnectionModel",
    "FinancialTransactionModel",
]
