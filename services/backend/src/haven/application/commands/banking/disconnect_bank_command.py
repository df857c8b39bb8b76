"""Revoke a bank connection and deactivate its accounts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from haven.application.dtos.banking import DisconnectResult
from haven.domain.banking.exceptions import AggregatorApiError, ConnectionNotFoundError
from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.repositories import (
    BankAccountRepository,
    ConnectionRepository,
)

if TYPE_CHECKING:
    from haven.application.context import UserContext
    from haven.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)


class DisconnectBankCommand:
    """Delete the requisition, suspend the connection, deactivate accounts.

    Only accounts surfaced by this connection are deactivated (plus legacy
    aggregator accounts of the user that never recorded a connection).
    """

    def __init__(
        self,
        aggregator: AggregatorPort,
        connection_repo: ConnectionRepository,
        bank_account_repo: BankAccountRepository,
        user_context: UserContext,
    ):
        self._aggregator = aggregator
        self._connection_repo = connection_repo
        self._bank_account_repo = bank_account_repo
        self._user_context = user_context

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> DisconnectBankCommand:
        return cls(
            aggregator=factory.aggregator(),
            connection_repo=factory.connection_repository(),
            bank_account_repo=factory.bank_account_repository(),
            user_context=factory.user_context,
        )

    async def execute(self, requisition_id: str) -> DisconnectResult:
        """
        Disconnect the current user's connection for a requisition.

        Raises
        ------
        ConnectionNotFoundError
            If the requisition does not belong to the current user
        AggregatorApiError
            If the aggregator fails to delete the requisition (a 404 is
            treated as already deleted)
        """
        user_id = self._user_context.user_id
        connection = await self._connection_repo.find_by_requisition_id(requisition_id)
        if connection is None or connection.user_id != user_id:
            raise ConnectionNotFoundError(requisition_id)

        try:
            await self._aggregator.delete_requisition(requisition_id)
        except AggregatorApiError as e:
            if e.status_code != 404:
                raise
            logger.info("Requisition %s was already deleted", requisition_id)

        if not connection.status.is_terminal:
            await self._connection_repo.mark_suspended(user_id, requisition_id)

        deactivated = await self._bank_account_repo.deactivate_for_connection(
            user_id,
            connection.id,
        )

        logger.info(
            "Disconnected %s for user %s (%d account(s) deactivated)",
            connection.institution_name,
            user_id,
            deactivated,
        )
        return DisconnectResult(
            requisition_id=requisition_id,
            institution_name=connection.institution_name,
            accounts_deactivated=deactivated,
        )
