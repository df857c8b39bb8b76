"""User context for request-scoped user identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class UserContext:
    """
    Immutable context for the current authenticated user.

    This is created once per request/command execution from the verified
    JWT and handed to commands and queries, which scope every lookup to
    ``user_id``.
    """

    user_id: UUID
    email: Optional[str] = None

    @classmethod
    def from_values(cls, user_id: UUID, email: Optional[str] = None) -> UserContext:
        return cls(user_id=user_id, email=email)

    def __str__(self) -> str:
        return f"UserContext({self.email or self.user_id})"

    def __repr__(self) -> str:
        return f"UserContext(user_id={self.user_id}, email={self.email!r})"
