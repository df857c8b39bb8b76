"""SQLAlchemy implementation of FinancialTransactionRepository."""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from haven.domain.banking.repositories import FinancialTransactionRepository
from haven.domain.banking.value_objects import (
    DataSource,
    FinancialTransaction,
    TransactionType,
)
from haven.domain.shared.time import utc_now
from haven.infrastructure.persistence.sqlalchemy.models.banking import (
    FinancialTransactionModel,
)
from haven.infrastructure.persistence.sqlalchemy.repositories._utils import (
    upsert_insert,
)

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = (
    "bank_account_id",
    "amount",
    "currency",
    "transaction_date",
    "posting_date",
    "description",
    "merchant_name",
    "transaction_type",
    "reference",
    "source",
    "updated_at",
)


class FinancialTransactionRepositorySQLAlchemy(FinancialTransactionRepository):
    """Transactions, upserted on the aggregator's transaction id."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def upsert(self, transaction: FinancialTransaction) -> None:
        if not transaction.external_transaction_id:
            msg = "Only transactions with an external id can be upserted"
            raise ValueError(msg)

        table = FinancialTransactionModel.__table__
        stmt = upsert_insert(self._session, table).values(
            **self._values(transaction),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["gocardless_transaction_id"],
            set_={column: stmt.excluded[column] for column in _UPDATABLE_COLUMNS},
        )
        await self._session.execute(stmt)

    async def add(self, transaction: FinancialTransaction) -> None:
        self._session.add(FinancialTransactionModel(**self._values(transaction)))
        await self._session.flush()

    async def find_by_account(self, account_id: UUID) -> list[FinancialTransaction]:
        stmt = (
            select(FinancialTransactionModel)
            .where(FinancialTransactionModel.bank_account_id == account_id)
            .order_by(FinancialTransactionModel.transaction_date.desc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._model_to_domain(m) for m in result.scalars().all()]

    def _values(self, transaction: FinancialTransaction) -> dict:
        now = utc_now()
        return {
            "id": uuid4(),
            "bank_account_id": transaction.account_id,
            "gocardless_transaction_id": transaction.external_transaction_id,
            "amount": transaction.amount,
            "currency": transaction.currency,
            "transaction_date": transaction.transaction_date,
            "posting_date": transaction.posting_date,
            "description": transaction.description,
            "merchant_name": transaction.merchant_name,
            "transaction_type": transaction.transaction_type.value,
            "reference": transaction.reference,
            "source": transaction.source.value,
            "created_at": now,
            "updated_at": now,
        }

    def _model_to_domain(
        self,
        model: FinancialTransactionModel,
    ) -> FinancialTransaction:
        return FinancialTransaction(
            account_id=model.bank_account_id,
            external_transaction_id=model.gocardless_transaction_id,
            amount=model.amount,
            currency=model.currency,
            transaction_date=model.transaction_date,
            posting_date=model.posting_date,
            description=model.description,
            merchant_name=model.merchant_name,
            transaction_type=TransactionType(model.transaction_type),
            reference=model.reference,
            source=DataSource(model.source),
        )
