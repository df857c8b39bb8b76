"""SQLAlchemy implementation of BankAccountRepository."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from haven.domain.banking.entities import BankAccount
from haven.domain.banking.repositories import BankAccountRepository
from haven.domain.banking.value_objects import AccountType, ConnectionType
from haven.domain.shared.time import ensure_tz_aware, utc_now
from haven.infrastructure.persistence.sqlalchemy.models.banking import (
    BankAccountModel,
)

logger = logging.getLogger(__name__)


class BankAccountRepositorySQLAlchemy(BankAccountRepository):
    """SQLAlchemy implementation of BankAccountRepository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, account: BankAccount) -> None:
        existing = await self._session.get(BankAccountModel, account.id)

        if existing:
            existing.name = account.name
            existing.bank_name = account.bank_name
            existing.account_type = account.account_type.value
            existing.account_number_last4 = account.account_number_last4
            existing.currency = account.currency
            existing.description = account.description
            existing.connection_type = account.connection_type.value
            existing.gocardless_account_id = account.external_account_id
            existing.connection_id = account.connection_id
            existing.is_active = account.is_active
            existing.current_balance = account.current_balance
            existing.updated_at = account.updated_at
            logger.debug("Updated bank account: %s", account.id)
        else:
            self._session.add(
                BankAccountModel(
                    id=account.id,
                    user_id=account.user_id,
                    name=account.name,
                    bank_name=account.bank_name,
                    account_type=account.account_type.value,
                    account_number_last4=account.account_number_last4,
                    currency=account.currency,
                    description=account.description,
                    connection_type=account.connection_type.value,
                    gocardless_account_id=account.external_account_id,
                    connection_id=account.connection_id,
                    is_active=account.is_active,
                    current_balance=account.current_balance,
                    created_at=account.created_at,
                    updated_at=account.updated_at,
                ),
            )
            logger.info("Created bank account: %s (%s)", account.name, account.id)

        await self._session.flush()

    async def find_by_id(
        self,
        user_id: UUID,
        account_id: UUID,
    ) -> Optional[BankAccount]:
        stmt = select(BankAccountModel).where(
            BankAccountModel.user_id == user_id,
            BankAccountModel.id == account_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_domain(model) if model else None

    async def find_by_external_id(
        self,
        external_account_id: str,
    ) -> Optional[BankAccount]:
        stmt = select(BankAccountModel).where(
            BankAccountModel.gocardless_account_id == external_account_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_domain(model) if model else None

    async def find_by_user(self, user_id: UUID) -> list[BankAccount]:
        stmt = (
            select(BankAccountModel)
            .where(BankAccountModel.user_id == user_id)
            .order_by(BankAccountModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return [self._model_to_domain(m) for m in result.scalars().all()]

    async def find_active_aggregator_accounts(
        self,
        user_id: UUID,
        account_id: Optional[UUID] = None,
    ) -> list[BankAccount]:
        stmt = select(BankAccountModel).where(
            BankAccountModel.user_id == user_id,
            BankAccountModel.connection_type == ConnectionType.AGGREGATOR.value,
            BankAccountModel.is_active == True,  # NOQA: E712
        )
        if account_id is not None:
            stmt = stmt.where(BankAccountModel.id == account_id)

        result = await self._session.execute(
            stmt.order_by(BankAccountModel.created_at.asc()),
        )
        return [self._model_to_domain(m) for m in result.scalars().all()]

    async def find_by_connection(self, connection_id: UUID) -> list[BankAccount]:
        stmt = (
            select(BankAccountModel)
            .where(BankAccountModel.connection_id == connection_id)
            .order_by(BankAccountModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return [self._model_to_domain(m) for m in result.scalars().all()]

    async def deactivate_for_connection(
        self,
        user_id: UUID,
        connection_id: UUID,
    ) -> int:
        stmt = (
            update(BankAccountModel)
            .where(
                BankAccountModel.user_id == user_id,
                BankAccountModel.connection_type == ConnectionType.AGGREGATOR.value,
                BankAccountModel.is_active == True,  # NOQA: E712
                or_(
                    BankAccountModel.connection_id == connection_id,
                    BankAccountModel.connection_id.is_(None),
                ),
            )
            .values(is_active=False, updated_at=utc_now())
        )
        result = await self._session.execute(stmt)
        await self._session.flush()

        count = result.rowcount or 0
        logger.info(
            "Deactivated %d bank account(s) of connection %s",
            count,
            connection_id,
        )
        return count

    def _model_to_domain(self, model: BankAccountModel) -> BankAccount:
        # Reconstruct the entity
        account = BankAccount.__new__(BankAccount)
        account._id = model.id
        account._user_id = model.user_id
        account._name = model.name
        account._bank_name = model.bank_name
        account._account_type = AccountType(model.account_type)
        account._currency = model.currency
        account._account_number_last4 = model.account_number_last4
        account._connection_type = ConnectionType(model.connection_type)
        account._external_account_id = model.gocardless_account_id
        account._connection_id = model.connection_id
        if model.current_balance is not None:
            account._current_balance = Decimal(model.current_balance)
        else:
            account._current_balance = None
        account._description = model.description
        account._is_active = model.is_active
        account._created_at = ensure_tz_aware(model.created_at)
        account._updated_at = ensure_tz_aware(model.updated_at)

        return account
