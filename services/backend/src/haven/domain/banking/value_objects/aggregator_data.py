"""Typed views of the payloads returned by the GoCardless Bank Account Data API.

Field names follow Python conventions; the aggregator's camelCase names are
accepted through aliases so ``model_validate`` works on raw JSON.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from haven.domain.banking.value_objects.account_type import TransactionType


class _AggregatorModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class Institution(_AggregatorModel):
    """A bank that can be linked through the aggregator."""

    id: str
    name: str
    bic: str | None = None
    transaction_total_days: int | None = None
    countries: list[str] = Field(default_factory=list)
    logo: str | None = None


class EndUserAgreement(_AggregatorModel):
    """Access terms the end user accepts at their bank."""

    id: str
    institution_id: str
    max_historical_days: int = 90
    access_valid_for_days: int = 90
    access_scope: list[str] = Field(default_factory=list)
    created: datetime | None = None
    accepted: datetime | None = None


class Requisition(_AggregatorModel):
    """One authorization session, including the accounts it unlocked."""

    id: str
    status: str
    link: str | None = None
    institution_id: str | None = None
    agreement: str | None = None
    reference: str | None = None
    redirect: str | None = None
    accounts: list[str] = Field(default_factory=list)

    @property
    def is_linked(self) -> bool:
        return self.status == "LN"


class AccountDetails(_AggregatorModel):
    """Descriptive data of one external account."""

    resource_id: str | None = Field(default=None, alias="resourceId")
    iban: str | None = None
    currency: str | None = None
    owner_name: str | None = Field(default=None, alias="ownerName")
    name: str | None = None
    product: str | None = None
    cash_account_type: str | None = Field(default=None, alias="cashAccountType")


class Amount(_AggregatorModel):
    amount: Decimal
    currency: str

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> str:
        return str(value)


class Balance(_AggregatorModel):
    balance_amount: Amount = Field(alias="balanceAmount")
    balance_type: str = Field(alias="balanceType")
    reference_date: date | None = Field(default=None, alias="referenceDate")

    @property
    def is_interim_available(self) -> bool:
        return self.balance_type == "interimAvailable"


class AggregatorTransaction(_AggregatorModel):
    """A booked or pending transaction as reported by the aggregator."""

    transaction_id: str | None = Field(default=None, alias="transactionId")
    internal_transaction_id: str | None = Field(
        default=None,
        alias="internalTransactionId",
    )
    booking_date: date | None = Field(default=None, alias="bookingDate")
    value_date: date | None = Field(default=None, alias="valueDate")
    transaction_amount: Amount = Field(alias="transactionAmount")
    creditor_name: str | None = Field(default=None, alias="creditorName")
    debtor_name: str | None = Field(default=None, alias="debtorName")
    remittance_information_unstructured: str | None = Field(
        default=None,
        alias="remittanceInformationUnstructured",
    )
    remittance_information_structured: str | None = Field(
        default=None,
        alias="remittanceInformationStructured",
    )

    @property
    def external_id(self) -> str | None:
        return self.transaction_id or self.internal_transaction_id

    @property
    def counterparty_name(self) -> str | None:
        return self.creditor_name or self.debtor_name

    @property
    def transaction_type(self) -> TransactionType:
        return TransactionType.from_amount(self.transaction_amount.amount)


class TransactionPage(_AggregatorModel):
    """Raw booked/pending transaction lists for one account.

    Entries are kept as dictionaries so that one malformed transaction can
    be skipped without discarding the rest of the page.
    """

    booked: list[dict[str, Any]] = Field(default_factory=list)
    pending: list[dict[str, Any]] = Field(default_factory=list)


def select_primary_balance(balances: list[Balance]) -> Balance | None:
    """Pick the ``interimAvailable`` balance, falling back to the first one."""
    for balance in balances:
        if balance.is_interim_available:
            return balance
    return balances[0] if balances else None
