"""Connection entity: one authorization session with one institution."""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from haven.domain.banking.exceptions import InvalidConnectionStateError
from haven.domain.banking.value_objects import ConnectionStatus
from haven.domain.shared.time import utc_now


class Connection:
    """
    A user's delegated-access link to one bank through the aggregator.

    Several ``created`` connections may exist for the same user and
    institution (abandoned attempts); lookups pick the newest one. Status
    changes go through the transition methods, which reject moves out of a
    terminal state.
    """

    def __init__(  # NOQA: PLR0913
        self,
        user_id: UUID,
        requisition_id: str,
        institution_id: str,
        institution_name: str,
        country_code: str,
        reference: str | None = None,
        end_user_agreement_id: str | None = None,
        access_valid_for_days: int = 90,
        max_historical_days: int = 90,
    ):
        if not requisition_id:
            msg = "Requisition id cannot be empty"
            raise ValueError(msg)

        now = utc_now()
        self._id = uuid4()
        self._user_id = user_id
        self._requisition_id = requisition_id
        self._institution_id = institution_id
        self._institution_name = institution_name.strip()
        self._country_code = country_code.upper()
        self._reference = reference
        self._status = ConnectionStatus.CREATED
        self._end_user_agreement_id = end_user_agreement_id
        self._access_valid_for_days = access_valid_for_days
        self._max_historical_days = max_historical_days
        self._agreement_accepted_at: datetime | None = None
        self._agreement_expires_at: datetime | None = None
        self._last_sync_at: datetime | None = None
        self._sync_error: str | None = None
        self._created_at = now
        self._updated_at = now

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def user_id(self) -> UUID:
        return self._user_id

    @property
    def requisition_id(self) -> str:
        return self._requisition_id

    @property
    def institution_id(self) -> str:
        return self._institution_id

    @property
    def institution_name(self) -> str:
        return self._institution_name

    @property
    def country_code(self) -> str:
        return self._country_code

    @property
    def reference(self) -> str | None:
        return self._reference

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def end_user_agreement_id(self) -> str | None:
        return self._end_user_agreement_id

    @property
    def access_valid_for_days(self) -> int:
        return self._access_valid_for_days

    @property
    def max_historical_days(self) -> int:
        return self._max_historical_days

    @property
    def agreement_accepted_at(self) -> datetime | None:
        return self._agreement_accepted_at

    @property
    def agreement_expires_at(self) -> datetime | None:
        return self._agreement_expires_at

    @property
    def last_sync_at(self) -> datetime | None:
        return self._last_sync_at

    @property
    def sync_error(self) -> str | None:
        return self._sync_error

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_linked(self) -> bool:
        return self._status == ConnectionStatus.LINKED

    def is_agreement_expired(self, now: datetime | None = None) -> bool:
        if self._agreement_expires_at is None:
            return False
        return (now or utc_now()) >= self._agreement_expires_at

    def mark_linked(self, at: datetime | None = None) -> None:
        """Record a successful authorization at the bank."""
        at = at or utc_now()
        self._transition(ConnectionStatus.LINKED)
        self._agreement_accepted_at = at
        self._agreement_expires_at = at + timedelta(days=self._access_valid_for_days)
        self._last_sync_at = at

    def suspend(self) -> None:
        self._transition(ConnectionStatus.SUSPENDED)

    def expire(self) -> None:
        self._transition(ConnectionStatus.EXPIRED)

    def fail(self, reason: str | None = None) -> None:
        self._transition(ConnectionStatus.ERROR)
        if reason:
            self._sync_error = reason

    def record_sync(self, at: datetime, error: str | None = None) -> None:
        self._last_sync_at = at
        self._sync_error = error
        self._updated_at = utc_now()

    def _transition(self, target: ConnectionStatus) -> None:
        if not self._status.can_transition_to(target):
            raise InvalidConnectionStateError(self._status.value, target.value)
        self._status = target
        self._updated_at = utc_now()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Connection):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return (
            f"Connection[{self._status.value}]: {self._institution_name} "
            f"({self._requisition_id})"
        )
