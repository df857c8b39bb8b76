"""API request/response schemas."""

from haven.presentation.api.schemas.connections import (
    AccountStatsResponse,
    BankAccountResponse,
    ConnectionListResponse,
    ConnectionResponse,
    ConnectionStatsResponse,
    ConnectionStatusResponse,
    ConnectRequest,
    ConnectResponse,
    DisconnectRequest,
    DisconnectResponse,
    InstitutionResponse,
)
from haven.presentation.api.schemas.sync import (
    AccountSyncStatusResponse,
    DailySyncResponse,
    SyncRunRequest,
    SyncRunResponse,
    SyncStatusResponse,
)

__all__ = [
    "AccountStatsResponse",
    "AccountSyncStatusResponse",
    "BankAccountResponse",
    "ConnectRequest",
    "ConnectResponse",
    "ConnectionListResponse",
    "ConnectionResponse",
    "ConnectionStatsResponse",
    "ConnectionStatusResponse",
    "DailySyncResponse",
    "DisconnectRequest",
    "DisconnectResponse",
    "InstitutionResponse",
    "SyncRunRequest",
    "SyncRunResponse",
    "SyncStatusResponse",
]
