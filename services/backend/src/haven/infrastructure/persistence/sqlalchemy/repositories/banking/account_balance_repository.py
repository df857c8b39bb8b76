"""SQLAlchemy implementation of AccountBalanceRepository."""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from haven.domain.banking.repositories import AccountBalanceRepository
from haven.domain.banking.value_objects import AccountBalance, DataSource
from haven.domain.shared.time import utc_now
from haven.infrastructure.persistence.sqlalchemy.models.banking import (
    AccountBalanceModel,
)
from haven.infrastructure.persistence.sqlalchemy.repositories._utils import (
    upsert_insert,
)

logger = logging.getLogger(__name__)


class AccountBalanceRepositorySQLAlchemy(AccountBalanceRepository):
    """Balance snapshots, upserted on (bank_account_id, balance_date)."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def upsert(self, balance: AccountBalance) -> None:
        now = utc_now()
        table = AccountBalanceModel.__table__
        stmt = upsert_insert(self._session, table).values(
            id=uuid4(),
            bank_account_id=balance.account_id,
            balance=balance.balance,
            available_balance=balance.available_balance,
            currency=balance.currency,
            balance_date=balance.balance_date,
            source=balance.source.value,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["bank_account_id", "balance_date"],
            set_={
                "balance": stmt.excluded.balance,
                "available_balance": stmt.excluded.available_balance,
                "currency": stmt.excluded.currency,
                "source": stmt.excluded.source,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)
        logger.debug(
            "Upserted balance for account %s on %s",
            balance.account_id,
            balance.balance_date,
        )

    async def find_by_account(self, account_id: UUID) -> list[AccountBalance]:
        stmt = (
            select(AccountBalanceModel)
            .where(AccountBalanceModel.bank_account_id == account_id)
            .order_by(AccountBalanceModel.balance_date.desc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [
            AccountBalance(
                account_id=model.bank_account_id,
                balance=model.balance,
                available_balance=model.available_balance,
                currency=model.currency,
                balance_date=model.balance_date,
                source=DataSource(model.source),
            )
            for model in result.scalars().all()
        ]
