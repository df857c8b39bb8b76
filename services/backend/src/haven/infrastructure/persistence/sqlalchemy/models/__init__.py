"""SQLAlchemy models.

Importing this package registers every table on ``Base.metadata``.
"""

from haven.infrastructure.persistence.sqlalchemy.models.banking import (
    AccountBalanceModel,
    BankAccountModel,
    ConnectionModel,
    FinancialTransactionModel,
)
from haven.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)

__all__ = [
    "AccountBalanceModel",
    "BankAccountModel",
    "Base",
    "ConnectionModel",
    "FinancialTransactionModel",
    "TimestampMixin",
]
