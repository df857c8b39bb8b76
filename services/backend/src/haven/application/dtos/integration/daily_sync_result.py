"""DTO for the scheduled all-users sync."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class UserSyncOutcome:
    user_id: UUID
    success: bool
    accounts_synced: int
    transactions_synced: int
    error: Optional[str] = None


@dataclass
class DailySyncResult:
    """Aggregated outcome of syncing every user with a linked connection."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    connections_expired: int = 0
    outcomes: list[UserSyncOutcome] = field(default_factory=list)

    @property
    def users_processed(self) -> int:
        return len(self.outcomes)

    @property
    def successful_syncs(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed_syncs(self) -> int:
        return self.users_processed - self.successful_syncs

    @property
    def total_accounts_synced(self) -> int:
        return sum(o.accounts_synced for o in self.outcomes)

    @property
    def total_transactions_synced(self) -> int:
        return sum(o.transactions_synced for o in self.outcomes)

    @property
    def errors(self) -> list[str]:
        return [f"User {o.user_id}: {o.error}" for o in self.outcomes if o.error]

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "users_processed": self.users_processed,
            "successful_syncs": self.successful_syncs,
            "failed_syncs": self.failed_syncs,
            "connections_expired": self.connections_expired,
            "total_accounts_synced": self.total_accounts_synced,
            "total_transactions_synced": self.total_transactions_synced,
            "errors": self.errors,
        }
