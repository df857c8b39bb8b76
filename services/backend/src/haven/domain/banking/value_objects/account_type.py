"""Account classification enums shared by accounts, balances and transactions."""

from decimal import Decimal
from enum import Enum


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    LOAN = "loan"
    OTHER = "other"

    @classmethod
    def from_cash_account_type(cls, code: str | None) -> "AccountType":
        """Map an ISO 20022 cash account type code (e.g. ``CACC``).

        Unknown or missing codes map to ``other``.
        """
        if not code:
            return cls.OTHER
        return _CASH_ACCOUNT_TYPES.get(code.strip().upper(), cls.OTHER)


_CASH_ACCOUNT_TYPES = {
    "CACC": AccountType.CHECKING,
    "SVGS": AccountType.SAVINGS,
    "CARD": AccountType.CREDIT,
    "LOAN": AccountType.LOAN,
    "MGLD": AccountType.INVESTMENT,
}


class ConnectionType(str, Enum):
    """How a bank account's data gets into the system."""

    MANUAL = "manual"
    AGGREGATOR = "aggregator"


class DataSource(str, Enum):
    """Origin of a balance or transaction row."""

    MANUAL = "manual"
    AGGREGATOR = "aggregator"


class TransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"

    @classmethod
    def from_amount(cls, amount: Decimal) -> "TransactionType":
        """Zero and positive amounts are credits, negative amounts debits."""
        return cls.CREDIT if amount >= 0 else cls.DEBIT
