"""Application services."""

from haven.application.services.connection_completion_watcher import (
    ConnectionCompletionWatcher,
    WatchOutcome,
    WatchResult,
)

__all__ = [
    "ConnectionCompletionWatcher",
    "WatchOutcome",
    "WatchResult",
]
