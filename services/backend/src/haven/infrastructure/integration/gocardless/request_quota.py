"""In-memory per-account request quota."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from haven.domain.banking.ports import RequestQuota
from haven.domain.shared.time import utc_now

logger = logging.getLogger(__name__)

DEFAULT_DAILY_LIMIT = 4
DEFAULT_WINDOW = timedelta(hours=24)


@dataclass
class _Window:
    count: int
    reset_at: datetime


class InMemoryRequestQuota(RequestQuota):
    """
    Request counters kept in process memory.

    A window opens with the first request for a key and lasts ``window``;
    once it has passed, the next request opens a fresh one. Counters are
    lost on restart and are not shared between processes.

    ``check_and_consume`` does not await, so it is atomic with respect to
    other coroutines on the same event loop.
    """

    def __init__(
        self,
        limit: int = DEFAULT_DAILY_LIMIT,
        window: timedelta = DEFAULT_WINDOW,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._limit = limit
        self._window = window
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def check_and_consume(self, key: str) -> bool:
        window = self._current(key)
        if window is None:
            window = _Window(count=0, reset_at=self._clock() + self._window)
            self._windows[key] = window

        if window.count >= self._limit:
            logger.info(
                "Request quota exhausted for %s until %s",
                key,
                window.reset_at.isoformat(),
            )
            return False

        window.count += 1
        return True

    def remaining(self, key: str) -> int:
        window = self._current(key)
        used = window.count if window else 0
        return max(self._limit - used, 0)

    def reset_at(self, key: str) -> Optional[datetime]:
        window = self._current(key)
        return window.reset_at if window else None

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)

    def _current(self, key: str) -> _Window | None:
        window = self._windows.get(key)
        if window is not None and self._clock() >= window.reset_at:
            del self._windows[key]
            return None
        return window
