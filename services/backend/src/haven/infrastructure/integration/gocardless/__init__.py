"""GoCardless Bank Account Data integration."""

from haven.infrastructure.integration.gocardless.client import (
    DEFAULT_BASE_URL,
    GoCardlessClient,
)
from haven.infrastructure.integration.gocardless.request_quota import (
    InMemoryRequestQuota,
)
from haven.infrastructure.integration.gocardless.token_cache import (
    TokenCache,
    TokenGrant,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "GoCardlessClient",
    "InMemoryRequestQuota",
    "TokenCache",
    "TokenGrant",
]
