"""Repository interface for aggregator connections."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from haven.domain.banking.entities import Connection


class ConnectionRepository(ABC):
    """
    Persistence of connections and the lookups the callback flow needs.

    Unlike account-scoped repositories, lookups here take the user id
    explicitly: the authorization callback arrives without a signed-in user
    and has to resolve the connection from the requisition id or reference.
    """

    @abstractmethod
    async def create(  # NOQA: PLR0913
        self,
        user_id: UUID,
        requisition_id: str,
        institution_id: str,
        institution_name: str,
        country_code: str,
        reference: Optional[str] = None,
        end_user_agreement_id: Optional[str] = None,
        access_valid_for_days: int = 90,
        max_historical_days: int = 90,
    ) -> Connection:
        """
        Insert a new connection in ``created`` state.

        Returns
        -------
        The persisted connection
        """

    @abstractmethod
    async def save(self, connection: Connection) -> None:
        """Persist state changes of an existing connection."""

    @abstractmethod
    async def find_by_requisition_id(self, requisition_id: str) -> Optional[Connection]:
        """Exact lookup by the aggregator's requisition id."""

    @abstractmethod
    async def find_most_recent_created_by_user(
        self,
        user_id: UUID,
    ) -> Optional[Connection]:
        """
        Return the newest ``created`` connection of a user.

        Used when the callback carries a caller-minted reference instead of
        the requisition id.
        """

    @abstractmethod
    async def find_by_user(self, user_id: UUID) -> list[Connection]:
        """Return all connections of a user, newest first."""

    @abstractmethod
    async def find_created_since(
        self,
        user_id: UUID,
        since: datetime,
    ) -> list[Connection]:
        """Return the user's connections created at or after ``since``."""

    @abstractmethod
    async def find_linked(self) -> list[Connection]:
        """Return every linked connection, least recently synced first."""

    @abstractmethod
    async def mark_linked(
        self,
        requisition_id: str,
        at: Optional[datetime] = None,
    ) -> Optional[Connection]:
        """
        Move a connection to ``linked``.

        Stamps ``agreement_accepted_at`` and ``last_sync_at``.

        Returns
        -------
        The updated connection, or None if no connection matches
        """

    @abstractmethod
    async def mark_suspended(self, user_id: UUID, requisition_id: str) -> bool:
        """
        Move the user's connection to ``suspended``.

        Returns
        -------
        True if a connection was updated
        """

    @abstractmethod
    async def update_sync_error(
        self,
        connection_id: UUID,
        message: Optional[str],
    ) -> None:
        """Store (or clear, with None) the last sync error of a connection."""

    @abstractmethod
    async def record_sync(
        self,
        user_id: UUID,
        synced_at: datetime,
        error: Optional[str],
    ) -> int:
        """
        Stamp the outcome of a sync on all linked connections of a user.

        Returns
        -------
        Number of connections updated
        """
