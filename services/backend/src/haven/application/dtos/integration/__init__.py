"""Integration (sync) DTOs."""

from haven.application.dtos.integration.daily_sync_result import (
    DailySyncResult,
    UserSyncOutcome,
)
from haven.application.dtos.integration.sync_result import SyncResult
from haven.application.dtos.integration.sync_status import (
    AccountSyncStatus,
    SyncStatus,
)

__all__ = [
    "AccountSyncStatus",
    "DailySyncResult",
    "SyncResult",
    "SyncStatus",
    "UserSyncOutcome",
]
