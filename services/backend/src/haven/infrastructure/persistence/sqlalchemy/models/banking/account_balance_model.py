"""SQLAlchemy model for daily balance snapshots."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Date, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from haven.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class AccountBalanceModel(Base, TimestampMixin):
    """One balance row per account and calendar day."""

    __tablename__ = "account_balances"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    bank_account_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("bank_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    balance: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    available_balance: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    balance_date: Mapped[date] = mapped_column(Date, nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "bank_account_id",
            "balance_date",
            name="uq_account_balance_date",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<AccountBalanceModel(account={self.bank_account_id}, "
            f"date={self.balance_date}, balance={self.balance})>"
        )
