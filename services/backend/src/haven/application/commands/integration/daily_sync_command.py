"""Scheduled sync over every user with a linked connection."""

from __future__ import annotations

import asyncio
import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, AsyncContextManager, Awaitable, Callable
from uuid import UUID

from haven.application.commands.integration.account_sync_command import (
    AccountSyncCommand,
)
from haven.application.dtos.integration import DailySyncResult, UserSyncOutcome
from haven.domain.banking.repositories import ConnectionRepository
from haven.domain.shared.time import utc_now

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)


class DailySyncCommand:
    """Run the account sync once per user, least recently synced first.

    Linked connections whose end-user agreement ran out are expired first
    and no longer synced. The outcome is stamped on every linked connection
    of the user (``last_sync_at`` and ``sync_error``). Each user's sync runs
    in a savepoint, so a failure for one user never stops the others.
    """

    def __init__(
        self,
        connection_repo: ConnectionRepository,
        sync_command_for: Callable[[UUID], AccountSyncCommand],
        delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        savepoint: Callable[[], AsyncContextManager[Any]] = nullcontext,
    ):
        self._connection_repo = connection_repo
        self._sync_command_for = sync_command_for
        self._delay_seconds = delay_seconds
        self._sleep = sleep
        self._savepoint = savepoint

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> DailySyncCommand:
        return cls(
            connection_repo=factory.connection_repository(),
            sync_command_for=lambda user_id: AccountSyncCommand.from_factory(
                factory,
                user_id=user_id,
            ),
            delay_seconds=factory.settings.daily_sync_user_delay_seconds,
            savepoint=factory.savepoint,
        )

    async def execute(self) -> DailySyncResult:
        result = DailySyncResult(started_at=utc_now())

        connections = await self._connection_repo.find_linked()
        user_ids: list[UUID] = []
        for connection in connections:
            if connection.is_agreement_expired(result.started_at):
                connection.expire()
                await self._connection_repo.save(connection)
                result.connections_expired += 1
                logger.info("Connection %s expired", connection.id)
                continue
            if connection.user_id not in user_ids:
                user_ids.append(connection.user_id)

        logger.info("Daily sync starting for %d user(s)", len(user_ids))

        for index, user_id in enumerate(user_ids):
            if index > 0 and self._delay_seconds > 0:
                await self._sleep(self._delay_seconds)
            result.outcomes.append(await self._sync_user(user_id))

        result.finished_at = utc_now()
        logger.info(
            "Daily sync finished: %d succeeded, %d failed",
            result.successful_syncs,
            result.failed_syncs,
        )
        return result

    async def _sync_user(self, user_id: UUID) -> UserSyncOutcome:
        try:
            async with self._savepoint():
                sync_result = await self._sync_command_for(user_id).execute()
        except Exception as e:
            logger.exception("Daily sync crashed for user %s", user_id)
            error = str(e)
            await self._connection_repo.record_sync(user_id, utc_now(), error)
            return UserSyncOutcome(
                user_id=user_id,
                success=False,
                accounts_synced=0,
                transactions_synced=0,
                error=error,
            )

        error = "; ".join(sync_result.errors) if sync_result.errors else None
        await self._connection_repo.record_sync(user_id, utc_now(), error)
        return UserSyncOutcome(
            user_id=user_id,
            success=sync_result.success,
            accounts_synced=sync_result.accounts_synced,
            transactions_synced=sync_result.transactions_synced,
            error=error,
        )
