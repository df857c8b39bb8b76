"""SQLAlchemy implementation of ConnectionRepository."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from haven.domain.banking.entities import Connection
from haven.domain.banking.repositories import ConnectionRepository
from haven.domain.banking.value_objects import ConnectionStatus
from haven.domain.shared.time import ensure_tz_aware, utc_now
from haven.infrastructure.persistence.sqlalchemy.models.banking import (
    ConnectionModel,
)

logger = logging.getLogger(__name__)


class ConnectionRepositorySQLAlchemy(ConnectionRepository):
    """SQLAlchemy implementation of ConnectionRepository."""

    def __init__(self, session: AsyncSession):
        self._session = session

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
        connection = Connection(
            user_id=user_id,
            requisition_id=requisition_id,
            institution_id=institution_id,
            institution_name=institution_name,
            country_code=country_code,
            reference=reference,
            end_user_agreement_id=end_user_agreement_id,
            access_valid_for_days=access_valid_for_days,
            max_historical_days=max_historical_days,
        )
        self._session.add(self._domain_to_model(connection))
        await self._session.flush()

        logger.info(
            "Created connection %s for user %s (requisition %s)",
            connection.id,
            user_id,
            requisition_id,
        )
        return connection

    async def save(self, connection: Connection) -> None:
        model = await self._session.get(ConnectionModel, connection.id)
        if model is None:
            self._session.add(self._domain_to_model(connection))
        else:
            model.status = connection.status.value
            model.agreement_accepted_at = connection.agreement_accepted_at
            model.agreement_expires_at = connection.agreement_expires_at
            model.last_sync_at = connection.last_sync_at
            model.sync_error = connection.sync_error
            model.updated_at = connection.updated_at

        await self._session.flush()

    async def find_by_requisition_id(self, requisition_id: str) -> Optional[Connection]:
        stmt = select(ConnectionModel).where(
            ConnectionModel.requisition_id == requisition_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_domain(model) if model else None

    async def find_most_recent_created_by_user(
        self,
        user_id: UUID,
    ) -> Optional[Connection]:
        stmt = (
            select(ConnectionModel)
            .where(
                ConnectionModel.user_id == user_id,
                ConnectionModel.status == ConnectionStatus.CREATED.value,
            )
            .order_by(ConnectionModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_domain(model) if model else None

    async def find_by_user(self, user_id: UUID) -> list[Connection]:
        stmt = (
            select(ConnectionModel)
            .where(ConnectionModel.user_id == user_id)
            .order_by(ConnectionModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._model_to_domain(m) for m in result.scalars().all()]

    async def find_created_since(
        self,
        user_id: UUID,
        since: datetime,
    ) -> list[Connection]:
        stmt = (
            select(ConnectionModel)
            .where(
                ConnectionModel.user_id == user_id,
                ConnectionModel.created_at >= since,
            )
            .order_by(ConnectionModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._model_to_domain(m) for m in result.scalars().all()]

    async def find_linked(self) -> list[Connection]:
        stmt = (
            select(ConnectionModel)
            .where(ConnectionModel.status == ConnectionStatus.LINKED.value)
            .order_by(
                ConnectionModel.last_sync_at.asc().nulls_first(),
                ConnectionModel.created_at.asc(),
            )
        )
        result = await self._session.execute(stmt)
        return [self._model_to_domain(m) for m in result.scalars().all()]

    async def mark_linked(
        self,
        requisition_id: str,
        at: Optional[datetime] = None,
    ) -> Optional[Connection]:
        connection = await self.find_by_requisition_id(requisition_id)
        if connection is None:
            return None

        connection.mark_linked(at)
        await self.save(connection)
        logger.info("Connection %s linked", connection.id)
        return connection

    async def mark_suspended(self, user_id: UUID, requisition_id: str) -> bool:
        connection = await self.find_by_requisition_id(requisition_id)
        if connection is None or connection.user_id != user_id:
            return False

        connection.suspend()
        await self.save(connection)
        logger.info("Connection %s suspended", connection.id)
        return True

    async def update_sync_error(
        self,
        connection_id: UUID,
        message: Optional[str],
    ) -> None:
        stmt = (
            update(ConnectionModel)
            .where(ConnectionModel.id == connection_id)
            .values(sync_error=message, updated_at=utc_now())
        )
        await self._session.execute(stmt)
        await self._session.flush()

    async def record_sync(
        self,
        user_id: UUID,
        synced_at: datetime,
        error: Optional[str],
    ) -> int:
        stmt = (
            update(ConnectionModel)
            .where(
                ConnectionModel.user_id == user_id,
                ConnectionModel.status == ConnectionStatus.LINKED.value,
            )
            .values(last_sync_at=synced_at, sync_error=error, updated_at=utc_now())
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount or 0

    def _domain_to_model(self, connection: Connection) -> ConnectionModel:
        return ConnectionModel(
            id=connection.id,
            user_id=connection.user_id,
            requisition_id=connection.requisition_id,
            reference=connection.reference,
            institution_id=connection.institution_id,
            institution_name=connection.institution_name,
            country_code=connection.country_code,
            status=connection.status.value,
            end_user_agreement_id=connection.end_user_agreement_id,
            access_valid_for_days=connection.access_valid_for_days,
            max_historical_days=connection.max_historical_days,
            agreement_accepted_at=connection.agreement_accepted_at,
            agreement_expires_at=connection.agreement_expires_at,
            last_sync_at=connection.last_sync_at,
            sync_error=connection.sync_error,
            created_at=connection.created_at,
            updated_at=connection.updated_at,
        )

    def _model_to_domain(self, model: ConnectionModel) -> Connection:
        # Reconstruct the entity
        connection = Connection.__new__(Connection)
        connection._id = model.id
        connection._user_id = model.user_id
        connection._requisition_id = model.requisition_id
        connection._reference = model.reference
        connection._institution_id = model.institution_id
        connection._institution_name = model.institution_name
        connection._country_code = model.country_code
        connection._status = ConnectionStatus(model.status)
        connection._end_user_agreement_id = model.end_user_agreement_id
        connection._access_valid_for_days = model.access_valid_for_days
        connection._max_historical_days = model.max_historical_days
        connection._agreement_accepted_at = _aware(model.agreement_accepted_at)
        connection._agreement_expires_at = _aware(model.agreement_expires_at)
        connection._last_sync_at = _aware(model.last_sync_at)
        connection._sync_error = model.sync_error
        connection._created_at = ensure_tz_aware(model.created_at)
        connection._updated_at = ensure_tz_aware(model.updated_at)

        return connection


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    return ensure_tz_aware(value) if value is not None else None
