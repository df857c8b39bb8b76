"""Sync commands."""

from haven.application.commands.integration.account_sync_command import (
    AccountSyncCommand,
)
from haven.application.commands.integration.daily_sync_command import (
    DailySyncCommand,
)

__all__ = [
    "AccountSyncCommand",
    "DailySyncCommand",
]
