"""Banking repositories (SQLAlchemy)."""

from haven.infrastructure.persistence.sqlalchemy.repositories.banking.account_balance_repository import (  # NOQA: E501
    AccountBalanceRepositorySQLAlchemy,
)
from haven.infrastructure.persistence.sqlalchemy.repositories.banking.bank_account_repository import (  # NOQA: E501
    BankAccountRepositorySQLAlchemy,
)
from haven.infrastructure.persistence.sqlalchemy.repositories.banking.connection_repository import (  # NOQA: E501
    ConnectionRepositorySQLAlchemy,
)
from haven.infrastructure.persistence.sqlalchemy.repositories.banking.financial_transaction_repository import (  # NOQA: E501
    FinancialTransactionRepositorySQLAlchemy,
)

__all__ = [
    "AccountBalanceRepositorySQLAlchemy",
    "BankAccountRepositorySQLAlchemy",
    "ConnectionRepositorySQLAlchemy",
    "FinancialTransactionRepositorySQLAlchemy",
]
