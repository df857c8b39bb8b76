"""Banking value objects."""

from haven.domain.banking.value_objects.account_balance import AccountBalance
from haven.domain.banking.value_objects.account_type import (
    AccountType,
    ConnectionType,
    DataSource,
    TransactionType,
)
from haven.domain.banking.value_objects.aggregator_data import (
    AccountDetails,
    AggregatorTransaction,
    Amount,
    Balance,
    EndUserAgreement,
    Institution,
    Requisition,
    TransactionPage,
    select_primary_balance,
)
from haven.domain.banking.value_objects.callback_reference import CallbackReference
from haven.domain.banking.value_objects.connection_status import (
    ConnectionStatus,
    RequisitionStatus,
)
from haven.domain.banking.value_objects.financial_transaction import (
    FinancialTransaction,
)

__all__ = [
    "AccountBalance",
    "AccountDetails",
    "AccountType",
    "AggregatorTransaction",
    "Amount",
    "Balance",
    "CallbackReference",
    "ConnectionStatus",
    "ConnectionType",
    "DataSource",
    "EndUserAgreement",
    "FinancialTransaction",
    "Institution",
    "Requisition",
    "RequisitionStatus",
    "TransactionPage",
    "TransactionType",
    "select_primary_balance",
]
