"""Repository interfaces for the banking domain."""

from haven.domain.banking.repositories.account_balance_repository import (
    AccountBalanceRepository,
)
from haven.domain.banking.repositories.bank_account_repository import (
    BankAccountRepository,
)
from haven.domain.banking.repositories.connection_repository import (
    ConnectionRepository,
)
from haven.domain.banking.repositories.financial_transaction_repository import (
    FinancialTransactionRepository,
)

__all__ = [
    "AccountBalanceRepository",
    "BankAccountRepository",
    "ConnectionRepository",
    "FinancialTransactionRepository",
]
