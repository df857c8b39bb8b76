from haven.presentation.api.routers.connections import router as connections_router
from haven.presentation.api.routers.sync import router as sync_router

__all__ = [
    "connections_router",
    "sync_router",
]
