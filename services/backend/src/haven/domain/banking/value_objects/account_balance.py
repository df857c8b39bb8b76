"""Daily balance snapshot value object."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from haven.domain.banking.value_objects.account_type import DataSource
from haven.domain.banking.value_objects.aggregator_data import Balance


class AccountBalance(BaseModel):
    """Balance of one account on one calendar day.

    At most one snapshot exists per (account, balance date); later syncs on
    the same day overwrite earlier ones.
    """

    account_id: UUID
    balance: Decimal
    available_balance: Decimal | None = None
    currency: str = Field(..., min_length=3, max_length=3)
    balance_date: date
    source: DataSource = DataSource.AGGREGATOR

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_aggregator(
        cls,
        account_id: UUID,
        primary: Balance,
        balance_date: date,
    ) -> "AccountBalance":
        available = (
            primary.balance_amount.amount if primary.is_interim_available else None
        )
        return cls(
            account_id=account_id,
            balance=primary.balance_amount.amount,
            available_balance=available,
            currency=primary.balance_amount.currency,
            balance_date=balance_date,
        )

    @field_serializer("balance", "available_balance")
    def serialize_amount(self, value: Decimal | None) -> str | None:
        return str(value) if value is not None else None
