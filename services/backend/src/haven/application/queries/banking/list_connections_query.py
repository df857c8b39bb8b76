"""List a user's connections with the accounts they surfaced."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

from haven.application.dtos.banking import BankAccountInfo, ConnectionInfo
from haven.domain.banking.repositories import (
    BankAccountRepository,
    ConnectionRepository,
)

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory


@dataclass
class ConnectionWithAccounts:
    connection: ConnectionInfo
    accounts: list[BankAccountInfo] = field(default_factory=list)


class ListConnectionsQuery:
    def __init__(
        self,
        connection_repo: ConnectionRepository,
        bank_account_repo: BankAccountRepository,
        user_id: UUID,
    ):
        self._connection_repo = connection_repo
        self._bank_account_repo = bank_account_repo
        self._user_id = user_id

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> ListConnectionsQuery:
        return cls(
            connection_repo=factory.connection_repository(),
            bank_account_repo=factory.bank_account_repository(),
            user_id=factory.user_context.user_id,
        )

    async def execute(self) -> list[ConnectionWithAccounts]:
        connections = await self._connection_repo.find_by_user(self._user_id)
        result = []
        for connection in connections:
            accounts = await self._bank_account_repo.find_by_connection(connection.id)
            result.append(
                ConnectionWithAccounts(
                    connection=ConnectionInfo.from_entity(connection),
                    accounts=[BankAccountInfo.from_entity(a) for a in accounts],
                ),
            )
        return result
