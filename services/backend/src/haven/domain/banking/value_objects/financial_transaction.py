"""Ledger entry value object."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from haven.domain.banking.value_objects.account_type import (
    DataSource,
    TransactionType,
)
from haven.domain.banking.value_objects.aggregator_data import AggregatorTransaction


class FinancialTransaction(BaseModel):
    """One ledger entry of a bank account.

    Aggregator transactions are identified by ``external_transaction_id``,
    which is globally unique; manual ones have no external id.
    """

    account_id: UUID
    external_transaction_id: str | None = None
    amount: Decimal = Field(..., description="Signed, positive = inflow")
    currency: str = Field(..., min_length=3, max_length=3)
    transaction_date: date
    posting_date: date | None = None
    description: str | None = None
    merchant_name: str | None = None
    transaction_type: TransactionType
    reference: str | None = None
    source: DataSource = DataSource.AGGREGATOR

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_aggregator(
        cls,
        account_id: UUID,
        transaction: AggregatorTransaction,
    ) -> "FinancialTransaction":
        """Build a ledger entry from a booked aggregator transaction.

        Raises
        ------
        ValueError
            If the transaction has no usable id or no date
        """
        external_id = transaction.external_id
        if not external_id:
            msg = "Transaction has no transactionId"
            raise ValueError(msg)

        transaction_date = transaction.booking_date or transaction.value_date
        if transaction_date is None:
            msg = f"Transaction {external_id} has no booking or value date"
            raise ValueError(msg)

        return cls(
            account_id=account_id,
            external_transaction_id=external_id,
            amount=transaction.transaction_amount.amount,
            currency=transaction.transaction_amount.currency,
            transaction_date=transaction_date,
            posting_date=transaction.value_date,
            description=transaction.remittance_information_unstructured,
            merchant_name=transaction.counterparty_name,
            transaction_type=transaction.transaction_type,
            reference=transaction.remittance_information_structured,
        )

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> str:
        return str(value)
