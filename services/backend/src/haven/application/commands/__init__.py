"""Command layer - write operations that mutate state.

Commands are organized by domain:
- banking: Connecting, completing and disconnecting aggregator links
- integration: Syncing balances and transactions from the aggregator
"""

from haven.application.commands.banking import (
    CompleteConnectionCommand,
    DisconnectBankCommand,
    InitiateConnectionCommand,
)
from haven.application.commands.integration import (
    AccountSyncCommand,
    DailySyncCommand,
)

__all__ = [
    "AccountSyncCommand",
    "CompleteConnectionCommand",
    "DailySyncCommand",
    "DisconnectBankCommand",
    "InitiateConnectionCommand",
]
