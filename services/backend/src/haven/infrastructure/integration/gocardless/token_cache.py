"""Process-wide cache for GoCardless access/refresh tokens."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from pydantic import BaseModel

from haven.domain.shared.time import utc_now


class TokenGrant(BaseModel):
    """Response body of ``/token/new/`` and ``/token/refresh/``.

    Lifetimes are in seconds. The refresh endpoint only returns a new access
    token.
    """

    access: str
    access_expires: int
    refresh: Optional[str] = None
    refresh_expires: Optional[int] = None


@dataclass
class _CachedToken:
    value: str
    expires_at: datetime


class TokenCache:
    """
    Holds the current token pair and serializes renewals.

    ``lock`` must be held while renewing so that concurrent callers wait for
    the single exchange in flight instead of starting their own.

    Parameters
    ----------
    clock
        Returns the current time (injectable for tests)
    expiry_margin
        Tokens are treated as expired this long before their real expiry
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        expiry_margin: timedelta = timedelta(seconds=30),
    ):
        self._clock = clock
        self._margin = expiry_margin
        self._access: _CachedToken | None = None
        self._refresh: _CachedToken | None = None
        self.lock = asyncio.Lock()

    def access_token(self) -> str | None:
        return self._valid(self._access)

    def refresh_token(self) -> str | None:
        return self._valid(self._refresh)

    def store(self, grant: TokenGrant) -> None:
        now = self._clock()
        self._access = _CachedToken(
            grant.access,
            now + timedelta(seconds=grant.access_expires),
        )
        if grant.refresh and grant.refresh_expires:
            self._refresh = _CachedToken(
                grant.refresh,
                now + timedelta(seconds=grant.refresh_expires),
            )

    def invalidate_access(self) -> None:
        self._access = None

    def reset(self) -> None:
        self._access = None
        self._refresh = None

    def _valid(self, token: _CachedToken | None) -> str | None:
        if token is None:
            return None
        if self._clock() >= token.expires_at - self._margin:
            return None
        return token.value
