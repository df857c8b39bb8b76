"""Data classes exchanged by the auth services."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class TokenPayload:
    """Decoded contents of a verified JWT."""

    user_id: UUID
    email: str | None
    exp: datetime
    token_type: str = "access"

    def is_access_token(self) -> bool:
        return self.token_type == "access"
