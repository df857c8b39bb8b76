"""Banking DTOs."""

from haven.application.dtos.banking.connection_dtos import (
    AccountStats,
    BankAccountInfo,
    ConnectionCompleted,
    ConnectionInfo,
    ConnectionInitiated,
    ConnectionStats,
    ConnectionStatusOverview,
    DisconnectResult,
)

__all__ = [
    "AccountStats",
    "BankAccountInfo",
    "ConnectionCompleted",
    "ConnectionInfo",
    "ConnectionInitiated",
    "ConnectionStats",
    "ConnectionStatusOverview",
    "DisconnectResult",
]
