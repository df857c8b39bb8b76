"""Resolve the connection an authorization callback refers to."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from haven.domain.banking.entities import Connection
from haven.domain.banking.exceptions import ConnectionNotFoundError
from haven.domain.banking.repositories import ConnectionRepository
from haven.domain.banking.value_objects import CallbackReference

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)


class ResolveCallbackQuery:
    """Map the callback ``ref`` to a stored connection.

    The aggregator may echo either the requisition id or our own reference
    (``user-<uuid>-<millis>``). The requisition id wins; a reference
    resolves to the user's most recent connection still in ``created``.
    """

    def __init__(self, connection_repo: ConnectionRepository):
        self._connection_repo = connection_repo

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> ResolveCallbackQuery:
        return cls(connection_repo=factory.connection_repository())

    async def execute(self, ref: str) -> Connection:
        ref = (ref or "").strip()
        if not ref:
            raise ConnectionNotFoundError("<empty>")

        connection = await self._connection_repo.find_by_requisition_id(ref)
        if connection is not None:
            return connection

        reference = CallbackReference.parse(ref)
        if reference is not None:
            connection = await self._connection_repo.find_most_recent_created_by_user(
                reference.user_id,
            )
            if connection is not None:
                logger.debug(
                    "Resolved reference %s to requisition %s",
                    ref,
                    connection.requisition_id,
                )
                return connection

        raise ConnectionNotFoundError(ref)
