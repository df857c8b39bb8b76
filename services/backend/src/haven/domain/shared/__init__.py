"""Shared domain primitives."""

from haven.domain.shared.exceptions import (
    BusinessRuleViolation,
    ConflictError,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)
from haven.domain.shared.time import ensure_tz_aware, today_utc, utc_now

__all__ = [
    "BusinessRuleViolation",
    "ConflictError",
    "DomainException",
    "EntityNotFoundError",
    "ErrorCode",
    "ValidationError",
    "ensure_tz_aware",
    "today_utc",
    "utc_now",
]
