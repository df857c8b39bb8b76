"""Repository interface for ledger transactions."""

from abc import ABC, abstractmethod
from uuid import UUID

from haven.domain.banking.value_objects import FinancialTransaction


class FinancialTransactionRepository(ABC):
    @abstractmethod
    async def upsert(self, transaction: FinancialTransaction) -> None:
        """
        Insert or update a transaction keyed by its external id.

        Raises
        ------
        ValueError
            If the transaction has no external id
        """

    @abstractmethod
    async def add(self, transaction: FinancialTransaction) -> None:
        """Insert a transaction without deduplication (manual entries)."""

    @abstractmethod
    async def find_by_account(self, account_id: UUID) -> list[FinancialTransaction]:
        """Return an account's transactions, newest first."""
