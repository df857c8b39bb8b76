"""SQLAlchemy model for ledger transactions."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from haven.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class FinancialTransactionModel(Base, TimestampMixin):
    """Transactions pulled from the aggregator or entered manually."""

    __tablename__ = "financial_transactions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    bank_account_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("bank_accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Aggregator dedup key (NULL for manual entries)
    gocardless_transaction_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    posting_date: Mapped[Optional[date]] = mapped_column(Date)
    description: Mapped[Optional[str]] = mapped_column(Text)
    merchant_name: Mapped[Optional[str]] = mapped_column(String(255))
    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(255))
    source: Mapped[str] = mapped_column(String(20), nullable=False)

    __table_args__ = (
        Index("idx_transaction_account_date", "bank_account_id", "transaction_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<FinancialTransactionModel(id={self.id}, "
            f"date={self.transaction_date}, amount={self.amount})>"
        )
