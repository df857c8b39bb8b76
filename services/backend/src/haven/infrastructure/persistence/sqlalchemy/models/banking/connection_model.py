"""SQLAlchemy model for aggregator connections."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from haven.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class ConnectionModel(Base, TimestampMixin):
    """Database model for GoCardless connections (requisitions)."""

    __tablename__ = "gocardless_connections"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)

    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Aggregator session
    requisition_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )
    reference: Mapped[Optional[str]] = mapped_column(String(255))
    institution_id: Mapped[str] = mapped_column(String(255), nullable=False)
    institution_name: Mapped[str] = mapped_column(String(255), nullable=False)
    country_code: Mapped[str] = mapped_column(String(2), nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="created")

    # End-user agreement
    end_user_agreement_id: Mapped[Optional[str]] = mapped_column(String(255))
    access_valid_for_days: Mapped[int] = mapped_column(Integer, default=90)
    max_historical_days: Mapped[int] = mapped_column(Integer, default=90)
    agreement_accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
    )
    agreement_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
    )

    # Sync tracking
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    sync_error: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("idx_connection_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<ConnectionModel(id={self.id}, "
            f"requisition_id={self.requisition_id}, status={self.status})>"
        )
