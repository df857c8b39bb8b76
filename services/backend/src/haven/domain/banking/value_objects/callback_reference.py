"""Caller-minted reference passed to the aggregator with a requisition.

GoCardless echoes the reference back as the ``ref`` query parameter of the
redirect, so the callback may receive either a requisition id or a value of
the form ``user-{user_id}-{epoch_millis}``.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from haven.domain.shared.time import epoch_millis

_REFERENCE_PATTERN = re.compile(r"^user-([a-f0-9-]+)-(\d+)$")


@dataclass(frozen=True)
class CallbackReference:
    user_id: UUID
    timestamp_ms: int

    @classmethod
    def create(cls, user_id: UUID, at: datetime | None = None) -> "CallbackReference":
        return cls(user_id=user_id, timestamp_ms=epoch_millis(at))

    @classmethod
    def parse(cls, value: str) -> "CallbackReference | None":
        """Parse a reference, returning None if ``value`` is not one."""
        match = _REFERENCE_PATTERN.match(value or "")
        if match is None:
            return None
        try:
            user_id = UUID(match.group(1))
        except ValueError:
            return None
        return cls(user_id=user_id, timestamp_ms=int(match.group(2)))

    def __str__(self) -> str:
        return f"user-{self.user_id}-{self.timestamp_ms}"
