"""Connection lifecycle status and aggregator requisition codes."""

from enum import Enum


class ConnectionStatus(str, Enum):
    """Lifecycle of one authorization session with one institution.

    ``created`` -> ``linked`` -> (``suspended`` | ``expired`` | ``error``).
    A ``created`` connection may also end directly in any terminal state.
    """

    CREATED = "created"
    LINKED = "linked"
    SUSPENDED = "suspended"
    EXPIRED = "expired"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    def can_transition_to(self, target: "ConnectionStatus") -> bool:
        return target in _TRANSITIONS[self]


_TERMINAL = frozenset(
    {ConnectionStatus.SUSPENDED, ConnectionStatus.EXPIRED, ConnectionStatus.ERROR},
)

_TRANSITIONS: dict[ConnectionStatus, frozenset[ConnectionStatus]] = {
    ConnectionStatus.CREATED: frozenset({ConnectionStatus.LINKED}) | _TERMINAL,
    ConnectionStatus.LINKED: _TERMINAL,
    ConnectionStatus.SUSPENDED: frozenset(),
    ConnectionStatus.EXPIRED: frozenset(),
    ConnectionStatus.ERROR: frozenset(),
}


class RequisitionStatus(str, Enum):
    """Two-letter requisition codes reported by GoCardless."""

    CREATED = "CR"
    GIVING_CONSENT = "GC"
    UNDERGOING_AUTHENTICATION = "UA"
    REJECTED = "RJ"
    SELECTING_ACCOUNTS = "SA"
    GRANTING_ACCESS = "GA"
    LINKED = "LN"
    SUSPENDED = "SU"
    EXPIRED = "EX"

    @classmethod
    def terminal_failure_target(cls, code: str) -> ConnectionStatus | None:
        """Map an aggregator failure code to the connection state it implies."""
        return {
            cls.EXPIRED.value: ConnectionStatus.EXPIRED,
            cls.REJECTED.value: ConnectionStatus.ERROR,
            cls.SUSPENDED.value: ConnectionStatus.SUSPENDED,
        }.get(code)
