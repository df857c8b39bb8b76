"""Request-scoped application context."""

from haven.application.context.user_context import UserContext

__all__ = ["UserContext"]
