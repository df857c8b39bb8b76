"""Banking entities."""

from haven.domain.banking.entities.bank_account import (
    BankAccount,
    derive_display_name,
    derive_last4,
)
from haven.domain.banking.entities.connection import Connection

__all__ = [
    "BankAccount",
    "Connection",
    "derive_display_name",
    "derive_last4",
]
