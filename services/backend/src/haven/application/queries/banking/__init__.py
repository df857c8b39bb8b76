"""Banking queries."""

from haven.application.queries.banking.connection_status_query import (
    ConnectionStatusQuery,
)
from haven.application.queries.banking.list_connections_query import (
    ConnectionWithAccounts,
    ListConnectionsQuery,
)
from haven.application.queries.banking.list_institutions_query import (
    ListInstitutionsQuery,
)
from haven.application.queries.banking.resolve_callback_query import (
    ResolveCallbackQuery,
)

__all__ = [
    "ConnectionStatusQuery",
    "ConnectionWithAccounts",
    "ListConnectionsQuery",
    "ListInstitutionsQuery",
    "ResolveCallbackQuery",
]
