"""Query layer. Read-only operations for retrieving data."""

from haven.application.queries.banking import (
    ConnectionStatusQuery,
    ConnectionWithAccounts,
    ListConnectionsQuery,
    ListInstitutionsQuery,
    ResolveCallbackQuery,
)
from haven.application.queries.integration import SyncStatusQuery

__all__ = [
    "ConnectionStatusQuery",
    "ConnectionWithAccounts",
    "ListConnectionsQuery",
    "ListInstitutionsQuery",
    "ResolveCallbackQuery",
    "SyncStatusQuery",
]
