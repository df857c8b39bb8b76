"""Time utilities for the domain layer."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def today_utc() -> date:
    """Return current date in UTC (timezone-aware)."""
    return datetime.now(tz=timezone.utc).date()


def ensure_tz_aware(dt: datetime) -> datetime:
    """Ensure datetime is timezone-aware (UTC if naive)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def epoch_millis(dt: datetime | None = None) -> int:
    """Return milliseconds since the Unix epoch for ``dt`` (default: now)."""
    return int((dt or utc_now()).timestamp() * 1000)
