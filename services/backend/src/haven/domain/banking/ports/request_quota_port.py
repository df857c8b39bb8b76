"""Per-key request quota interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional


class RequestQuota(ABC):
    """
    Counts requests per key within a rolling window.

    The aggregator allows only a handful of data pulls per external account
    per day. Implementations may keep the counters in process memory (single
    instance) or in shared storage (several instances).
    """

    @abstractmethod
    def check_and_consume(self, key: str) -> bool:
        """Return whether a request is allowed for ``key`` and count it if so."""

    @abstractmethod
    def remaining(self, key: str) -> int:
        """Return the requests left for ``key`` without consuming any."""

    @abstractmethod
    def reset_at(self, key: str) -> Optional[datetime]:
        """Return when the current window for ``key`` ends, if one is open."""

    @abstractmethod
    def reset(self, key: Optional[str] = None) -> None:
        """Forget the counters of ``key`` (or of every key)."""
