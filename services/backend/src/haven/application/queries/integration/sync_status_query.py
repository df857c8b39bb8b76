"""Sync status query. Report how many aggregator requests each account has left."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING
from uuid import UUID

from haven.application.dtos.integration import AccountSyncStatus, SyncStatus
from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.repositories import (
    BankAccountRepository,
    ConnectionRepository,
)

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory

SYNC_INTERVAL = timedelta(hours=24)


class SyncStatusQuery:
    """Query the per-account request quota and last sync of a user."""

    def __init__(
        self,
        aggregator: AggregatorPort,
        bank_account_repo: BankAccountRepository,
        connection_repo: ConnectionRepository,
        user_id: UUID,
        daily_limit: int = 4,
    ):
        self._aggregator = aggregator
        self._bank_account_repo = bank_account_repo
        self._connection_repo = connection_repo
        self._user_id = user_id
        self._daily_limit = daily_limit

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> SyncStatusQuery:
        return cls(
            aggregator=factory.aggregator(),
            bank_account_repo=factory.bank_account_repository(),
            connection_repo=factory.connection_repository(),
            user_id=factory.user_context.user_id,
            daily_limit=factory.settings.gocardless_daily_request_limit,
        )

    async def execute(self) -> SyncStatus:
        accounts = await self._bank_account_repo.find_active_aggregator_accounts(
            self._user_id,
        )
        connections = {
            c.id: c for c in await self._connection_repo.find_by_user(self._user_id)
        }

        status = SyncStatus(daily_limit=self._daily_limit)
        for account in accounts:
            connection = connections.get(account.connection_id)
            last_sync_at = connection.last_sync_at if connection else None
            remaining = (
                self._aggregator.get_remaining_requests(account.external_account_id)
                if account.external_account_id
                else 0
            )
            status.accounts.append(
                AccountSyncStatus(
                    account_id=account.id,
                    account_name=account.name,
                    bank_name=account.bank_name,
                    remaining_requests=remaining,
                    last_sync_at=last_sync_at,
                    next_available_sync=(
                        last_sync_at + SYNC_INTERVAL if last_sync_at else None
                    ),
                ),
            )
        return status
