"""Bank account entity."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from haven.domain.banking.value_objects import (
    AccountDetails,
    AccountType,
    ConnectionType,
)
from haven.domain.shared.time import utc_now

DEFAULT_CURRENCY = "GBP"


def derive_display_name(details: AccountDetails, external_account_id: str) -> str:
    """Name shown for an aggregator account.

    Prefers the bank's own name, then the product name, then a name built
    from the last four characters of the IBAN or external id.
    """
    if details.name:
        return details.name
    if details.product:
        return details.product
    if details.iban:
        return f"Account {details.iban[-4:]}"
    return f"Account {external_account_id[-4:]}"


def derive_last4(details: AccountDetails, external_account_id: str) -> str:
    return (details.iban or external_account_id)[-4:]


class BankAccount:
    """
    An internal account record, either entered manually or surfaced by a
    connection to the aggregator.

    Aggregator accounts carry the aggregator's external account id and the
    id of the connection that produced them. Accounts are deactivated, never
    deleted.
    """

    def __init__(  # NOQA: PLR0913
        self,
        user_id: UUID,
        name: str,
        bank_name: str,
        account_type: AccountType = AccountType.OTHER,
        currency: str = DEFAULT_CURRENCY,
        account_number_last4: str | None = None,
        connection_type: ConnectionType = ConnectionType.MANUAL,
        external_account_id: str | None = None,
        connection_id: UUID | None = None,
        current_balance: Decimal | None = None,
        description: str | None = None,
        is_active: bool = True,
    ):
        now = utc_now()
        self._id = uuid4()
        self._user_id = user_id
        self._name = name.strip()
        self._bank_name = bank_name
        self._account_type = account_type
        self._currency = (currency or DEFAULT_CURRENCY).upper()
        self._account_number_last4 = account_number_last4
        self._connection_type = connection_type
        self._external_account_id = external_account_id
        self._connection_id = connection_id
        self._current_balance = current_balance
        self._description = description
        self._is_active = is_active
        self._created_at = now
        self._updated_at = now

        self._validate()

    @classmethod
    def from_aggregator(
        cls,
        user_id: UUID,
        connection_id: UUID,
        bank_name: str,
        external_account_id: str,
        details: AccountDetails,
    ) -> "BankAccount":
        return cls(
            user_id=user_id,
            name=derive_display_name(details, external_account_id),
            bank_name=bank_name,
            account_type=AccountType.from_cash_account_type(
                details.cash_account_type,
            ),
            currency=details.currency or DEFAULT_CURRENCY,
            account_number_last4=derive_last4(details, external_account_id),
            connection_type=ConnectionType.AGGREGATOR,
            external_account_id=external_account_id,
            connection_id=connection_id,
            description=f"Connected via GoCardless - {bank_name}",
        )

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def user_id(self) -> UUID:
        return self._user_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def bank_name(self) -> str:
        return self._bank_name

    @property
    def account_type(self) -> AccountType:
        return self._account_type

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def account_number_last4(self) -> str | None:
        return self._account_number_last4

    @property
    def connection_type(self) -> ConnectionType:
        return self._connection_type

    @property
    def external_account_id(self) -> str | None:
        return self._external_account_id

    @property
    def connection_id(self) -> UUID | None:
        return self._connection_id

    @property
    def current_balance(self) -> Decimal | None:
        return self._current_balance

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_aggregator(self) -> bool:
        return self._connection_type == ConnectionType.AGGREGATOR

    def _validate(self) -> None:
        if not self._name:
            msg = "Account name cannot be empty"
            raise ValueError(msg)
        if len(self._currency) != 3:
            msg = f"Invalid currency code: {self._currency}"
            raise ValueError(msg)

    def deactivate(self) -> None:
        self._is_active = False
        self._updated_at = utc_now()

    def relink(self, connection_id: UUID, bank_name: str) -> None:
        """Attach an existing aggregator account to a new connection."""
        self._connection_id = connection_id
        self._bank_name = bank_name
        self._is_active = True
        self._updated_at = utc_now()

    def __eq__(self, other) -> bool:
        if not isinstance(other, BankAccount):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        status = "ACTIVE" if self._is_active else "INACTIVE"
        return f"BankAccount[{status}]: {self._name} ({self._bank_name})"
