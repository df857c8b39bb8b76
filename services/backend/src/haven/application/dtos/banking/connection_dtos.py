"""DTOs returned by the connection commands and queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from haven.domain.banking.entities import BankAccount, Connection


@dataclass(frozen=True)
class BankAccountInfo:
    id: UUID
    name: str
    bank_name: str
    account_type: str
    currency: str
    account_number_last4: Optional[str]
    connection_type: str
    external_account_id: Optional[str]
    connection_id: Optional[UUID]
    is_active: bool

    @classmethod
    def from_entity(cls, account: BankAccount) -> BankAccountInfo:
        return cls(
            id=account.id,
            name=account.name,
            bank_name=account.bank_name,
            account_type=account.account_type.value,
            currency=account.currency,
            account_number_last4=account.account_number_last4,
            connection_type=account.connection_type.value,
            external_account_id=account.external_account_id,
            connection_id=account.connection_id,
            is_active=account.is_active,
        )


@dataclass(frozen=True)
class ConnectionInfo:
    id: UUID
    requisition_id: str
    institution_id: str
    institution_name: str
    country_code: str
    status: str
    created_at: datetime
    agreement_accepted_at: Optional[datetime]
    agreement_expires_at: Optional[datetime]
    last_sync_at: Optional[datetime]
    sync_error: Optional[str]

    @classmethod
    def from_entity(cls, connection: Connection) -> ConnectionInfo:
        return cls(
            id=connection.id,
            requisition_id=connection.requisition_id,
            institution_id=connection.institution_id,
            institution_name=connection.institution_name,
            country_code=connection.country_code,
            status=connection.status.value,
            created_at=connection.created_at,
            agreement_accepted_at=connection.agreement_accepted_at,
            agreement_expires_at=connection.agreement_expires_at,
            last_sync_at=connection.last_sync_at,
            sync_error=connection.sync_error,
        )


@dataclass(frozen=True)
class ConnectionInitiated:
    """Result of starting an authorization at the aggregator."""

    connection_id: UUID
    requisition_id: str
    auth_url: str
    reference: str
    institution_name: str


@dataclass
class ConnectionCompleted:
    """Result of completing an authorization.

    ``failed_account_ids`` lists external accounts that could not be
    materialized; the others are still returned in ``accounts``.
    """

    connection: ConnectionInfo
    accounts: list[BankAccountInfo] = field(default_factory=list)
    failed_account_ids: list[str] = field(default_factory=list)
    already_linked: bool = False


@dataclass(frozen=True)
class DisconnectResult:
    requisition_id: str
    institution_name: str
    accounts_deactivated: int


@dataclass(frozen=True)
class ConnectionStats:
    total: int
    linked: int
    created: int
    suspended: int


@dataclass(frozen=True)
class AccountStats:
    total: int
    active: int
    aggregator: int
    manual: int


@dataclass
class ConnectionStatusOverview:
    """What changed recently, used by the UI to detect a finished link."""

    checked_at: datetime
    recent_connections: list[ConnectionInfo]
    recent_accounts: list[BankAccountInfo]
    connection_stats: ConnectionStats
    account_stats: AccountStats

    @property
    def has_recent_connection(self) -> bool:
        return bool(self.recent_connections)

    @property
    def has_recent_accounts(self) -> bool:
        return bool(self.recent_accounts)
