"""SQLAlchemy model for bank accounts."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from haven.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class BankAccountModel(Base, TimestampMixin):
    """Database model for bank accounts (manual and aggregator-linked)."""

    __tablename__ = "bank_accounts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)

    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Account details
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bank_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[str] = mapped_column(String(20), nullable=False)
    account_number_last4: Mapped[Optional[str]] = mapped_column(String(4))
    currency: Mapped[str] = mapped_column(String(3), default="GBP")
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Data origin
    connection_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="manual",
    )
    gocardless_account_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
    )
    connection_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("gocardless_connections.id", ondelete="SET NULL"),
        index=True,
    )

    # State
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    current_balance: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))

    __table_args__ = (
        Index("idx_bank_account_user_type", "user_id", "connection_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<BankAccountModel(id={self.id}, "
            f"name={self.name}, type={self.connection_type})>"
        )
