"""Repository interface for daily balance snapshots."""

from abc import ABC, abstractmethod
from uuid import UUID

from haven.domain.banking.value_objects import AccountBalance


class AccountBalanceRepository(ABC):
    @abstractmethod
    async def upsert(self, balance: AccountBalance) -> None:
        """Insert or overwrite the snapshot for (account, balance date)."""

    @abstractmethod
    async def find_by_account(self, account_id: UUID) -> list[AccountBalance]:
        """Return an account's snapshots, newest date first."""
