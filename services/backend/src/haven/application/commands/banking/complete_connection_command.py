"""Finish linking a bank once the user authorized access."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date
from typing import TYPE_CHECKING, Any, AsyncContextManager, Callable

from haven.application.dtos.banking import (
    BankAccountInfo,
    ConnectionCompleted,
    ConnectionInfo,
)
from haven.domain.banking.entities import BankAccount, Connection
from haven.domain.banking.exceptions import (
    ConnectionNotFoundError,
    ConnectionNotLinkedError,
)
from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.repositories import (
    AccountBalanceRepository,
    BankAccountRepository,
    ConnectionRepository,
)
from haven.domain.banking.value_objects import (
    AccountBalance,
    ConnectionStatus,
    RequisitionStatus,
    select_primary_balance,
)
from haven.domain.shared.exceptions import ConflictError
from haven.domain.shared.time import today_utc

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)


class CompleteConnectionCommand:
    """Turn an authorized requisition into internal bank accounts.

    Each external account is fetched and stored in its own savepoint: one
    account failing leaves the others in place, and the failed ids are
    reported.
    """

    def __init__(
        self,
        aggregator: AggregatorPort,
        connection_repo: ConnectionRepository,
        bank_account_repo: BankAccountRepository,
        balance_repo: AccountBalanceRepository,
        today: Callable[[], date] = today_utc,
        savepoint: Callable[[], AsyncContextManager[Any]] = nullcontext,
    ):
        self._aggregator = aggregator
        self._connection_repo = connection_repo
        self._bank_account_repo = bank_account_repo
        self._balance_repo = balance_repo
        self._today = today
        self._savepoint = savepoint

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> CompleteConnectionCommand:
        return cls(
            aggregator=factory.aggregator(),
            connection_repo=factory.connection_repository(),
            bank_account_repo=factory.bank_account_repository(),
            balance_repo=factory.account_balance_repository(),
            savepoint=factory.savepoint,
        )

    async def execute(self, requisition_id: str) -> ConnectionCompleted:
        """
        Complete the connection for a requisition.

        Parameters
        ----------
        requisition_id
            Aggregator requisition id of a stored connection

        Returns
        -------
        ConnectionCompleted with the accounts that were linked

        Raises
        ------
        ConnectionNotFoundError
            If no connection exists for the requisition
        ConnectionNotLinkedError
            If the aggregator does not report the requisition as linked
        AggregatorApiError
            If the requisition itself cannot be fetched
        """
        connection = await self._connection_repo.find_by_requisition_id(requisition_id)
        if connection is None:
            raise ConnectionNotFoundError(requisition_id)

        if connection.is_linked:
            # Replayed callback; the accounts already exist
            accounts = await self._bank_account_repo.find_by_connection(connection.id)
            return ConnectionCompleted(
                connection=ConnectionInfo.from_entity(connection),
                accounts=[BankAccountInfo.from_entity(a) for a in accounts],
                already_linked=True,
            )

        requisition = await self._aggregator.get_requisition(requisition_id)
        if not requisition.is_linked:
            await self._record_aggregator_failure(connection, requisition.status)
            raise ConnectionNotLinkedError(requisition_id, requisition.status)

        linked = await self._connection_repo.mark_linked(requisition_id)
        if linked is None:
            raise ConnectionNotFoundError(requisition_id)

        result = ConnectionCompleted(connection=ConnectionInfo.from_entity(linked))
        for external_id in requisition.accounts:
            try:
                async with self._savepoint():
                    account = await self._link_account(linked, external_id)
            except Exception as e:
                logger.warning(
                    "Failed to link account %s of requisition %s: %s",
                    external_id,
                    requisition_id,
                    e,
                )
                result.failed_account_ids.append(external_id)
                continue
            result.accounts.append(BankAccountInfo.from_entity(account))

        logger.info(
            "Completed connection %s: %d account(s) linked, %d failed",
            linked.id,
            len(result.accounts),
            len(result.failed_account_ids),
        )
        return result

    async def _link_account(
        self,
        connection: Connection,
        external_id: str,
    ) -> BankAccount:
        details = await self._aggregator.get_account_details(external_id)
        balances = await self._aggregator.get_account_balances(external_id)

        account = await self._bank_account_repo.find_by_external_id(external_id)
        if account is None:
            account = BankAccount.from_aggregator(
                user_id=connection.user_id,
                connection_id=connection.id,
                bank_name=connection.institution_name,
                external_account_id=external_id,
                details=details,
            )
        elif account.user_id == connection.user_id:
            account.relink(connection.id, connection.institution_name)
        else:
            msg = f"External account {external_id} belongs to another user"
            raise ConflictError(msg)

        await self._bank_account_repo.save(account)

        primary = select_primary_balance(balances)
        if primary is not None:
            await self._balance_repo.upsert(
                AccountBalance.from_aggregator(account.id, primary, self._today()),
            )
        return account

    async def _record_aggregator_failure(
        self,
        connection: Connection,
        requisition_status: str,
    ) -> None:
        target = RequisitionStatus.terminal_failure_target(requisition_status)
        if target is None or not connection.status.can_transition_to(target):
            return

        if target == ConnectionStatus.EXPIRED:
            connection.expire()
        elif target == ConnectionStatus.SUSPENDED:
            connection.suspend()
        else:
            connection.fail(f"Authorization rejected (status {requisition_status})")
        await self._connection_repo.save(connection)
        logger.info(
            "Connection %s moved to %s after aggregator reported %s",
            connection.id,
            target.value,
            requisition_status,
        )
