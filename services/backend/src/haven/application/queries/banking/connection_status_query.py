"""Report recently created connections and accounts for link detection."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable
from uuid import UUID

from haven.application.dtos.banking import (
    AccountStats,
    BankAccountInfo,
    ConnectionInfo,
    ConnectionStats,
    ConnectionStatusOverview,
)
from haven.domain.banking.repositories import (
    BankAccountRepository,
    ConnectionRepository,
)
from haven.domain.banking.value_objects import ConnectionStatus
from haven.domain.shared.time import utc_now

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory

RECENT_WINDOW = timedelta(minutes=5)


class ConnectionStatusQuery:
    """Summarize what changed for a user in the last few minutes.

    A client that opened the bank's authorization page polls this to notice
    that the callback has linked the connection.
    """

    def __init__(
        self,
        connection_repo: ConnectionRepository,
        bank_account_repo: BankAccountRepository,
        user_id: UUID,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._connection_repo = connection_repo
        self._bank_account_repo = bank_account_repo
        self._user_id = user_id
        self._clock = clock

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> ConnectionStatusQuery:
        return cls(
            connection_repo=factory.connection_repository(),
            bank_account_repo=factory.bank_account_repository(),
            user_id=factory.user_context.user_id,
        )

    async def execute(self) -> ConnectionStatusOverview:
        now = self._clock()
        since = now - RECENT_WINDOW

        connections = await self._connection_repo.find_by_user(self._user_id)
        accounts = await self._bank_account_repo.find_by_user(self._user_id)

        recent_connections = [c for c in connections if c.created_at >= since]
        recent_accounts = [a for a in accounts if a.created_at >= since]
        statuses = [c.status for c in connections]

        return ConnectionStatusOverview(
            checked_at=now,
            recent_connections=[
                ConnectionInfo.from_entity(c) for c in recent_connections
            ],
            recent_accounts=[BankAccountInfo.from_entity(a) for a in recent_accounts],
            connection_stats=ConnectionStats(
                total=len(connections),
                linked=statuses.count(ConnectionStatus.LINKED),
                created=statuses.count(ConnectionStatus.CREATED),
                suspended=statuses.count(ConnectionStatus.SUSPENDED),
            ),
            account_stats=AccountStats(
                total=len(accounts),
                active=sum(1 for a in accounts if a.is_active),
                aggregator=sum(1 for a in accounts if a.is_aggregator),
                manual=sum(1 for a in accounts if not a.is_aggregator),
            ),
        )
