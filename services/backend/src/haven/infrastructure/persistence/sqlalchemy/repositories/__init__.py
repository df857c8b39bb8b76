"""SQLAlchemy repository implementations."""

from haven.infrastructure.persistence.sqlalchemy.repositories.banking import (
    AccountBalanceRepositorySQLAlchemy,
    BankAccountRepositorySQLAlchemy,
    ConnectionRepositorySQLAlchemy,
    FinancialTransactionRepositorySQLAlchemy,
)
from haven.infrastructure.persistence.sqlalchemy.repositories.factory import (
    SQLAlchemyRepositoryFactory,
    create_aggregator_from_settings,
)

__all__ = [
    "AccountBalanceRepositorySQLAlchemy",
    "BankAccountRepositorySQLAlchemy",
    "ConnectionRepositorySQLAlchemy",
    "FinancialTransactionRepositorySQLAlchemy",
    "SQLAlchemyRepositoryFactory",
    "create_aggregator_from_settings",
]
