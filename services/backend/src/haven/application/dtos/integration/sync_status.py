"""DTOs describing whether accounts can be synced right now."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class AccountSyncStatus:
    account_id: UUID
    account_name: str
    bank_name: str
    remaining_requests: int
    last_sync_at: Optional[datetime]
    next_available_sync: Optional[datetime]

    @property
    def can_sync_now(self) -> bool:
        return self.remaining_requests > 0


@dataclass
class SyncStatus:
    daily_limit: int
    accounts: list[AccountSyncStatus] = field(default_factory=list)

    @property
    def total_remaining_requests(self) -> int:
        return sum(a.remaining_requests for a in self.accounts)

    @property
    def can_sync_any(self) -> bool:
        return any(a.can_sync_now for a in self.accounts)
