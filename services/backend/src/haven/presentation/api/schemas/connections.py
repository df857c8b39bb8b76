"""Connection schemas for API request/response models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from haven.application.dtos.banking import (
    BankAccountInfo,
    ConnectionInfo,
    ConnectionStatusOverview,
)
from haven.domain.banking.value_objects import Institution


class InstitutionResponse(BaseModel):
    """A bank the user can link."""

    id: str = Field(..., description="Aggregator institution id")
    name: str
    bic: Optional[str] = None
    transaction_total_days: Optional[int] = Field(
        None,
        description="How many days of history the bank exposes",
    )
    logo: Optional[str] = None

    @classmethod
    def from_institution(cls, institution: Institution) -> InstitutionResponse:
        return cls(
            id=institution.id,
            name=institution.name,
            bic=institution.bic,
            transaction_total_days=institution.transaction_total_days,
            logo=institution.logo,
        )


class ConnectRequest(BaseModel):
    """Request schema for starting a bank authorization."""

    institution_id: str = Field(..., min_length=1)
    institution_name: str = Field("", description="Display name of the bank")
    country_code: str = Field("GB", min_length=2, max_length=2)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "institution_id": "MONZO_MONZGB2L",
                "institution_name": "Monzo",
                "country_code": "GB",
            },
        },
    )


class ConnectResponse(BaseModel):
    success: bool
    requisition_id: str
    auth_url: str = Field(..., description="Open this URL to authorize at the bank")
    message: str


class DisconnectRequest(BaseModel):
    requisition_id: str = Field(..., min_length=1)


class DisconnectResponse(BaseModel):
    success: bool
    message: str
    disconnected_institution: str
    accounts_deactivated: int


class BankAccountResponse(BaseModel):
    id: UUID
    name: str
    bank_name: str
    account_type: str
    currency: str
    account_number_last4: Optional[str]
    connection_type: str
    connection_id: Optional[UUID]
    is_active: bool

    @classmethod
    def from_info(cls, info: BankAccountInfo) -> BankAccountResponse:
        return cls(
            id=info.id,
            name=info.name,
            bank_name=info.bank_name,
            account_type=info.account_type,
            currency=info.currency,
            account_number_last4=info.account_number_last4,
            connection_type=info.connection_type,
            connection_id=info.connection_id,
            is_active=info.is_active,
        )


class ConnectionResponse(BaseModel):
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
    accounts: list[BankAccountResponse] = Field(default_factory=list)

    @classmethod
    def from_info(
        cls,
        info: ConnectionInfo,
        accounts: Optional[list[BankAccountInfo]] = None,
    ) -> ConnectionResponse:
        return cls(
            id=info.id,
            requisition_id=info.requisition_id,
            institution_id=info.institution_id,
            institution_name=info.institution_name,
            country_code=info.country_code,
            status=info.status,
            created_at=info.created_at,
            agreement_accepted_at=info.agreement_accepted_at,
            agreement_expires_at=info.agreement_expires_at,
            last_sync_at=info.last_sync_at,
            sync_error=info.sync_error,
            accounts=[BankAccountResponse.from_info(a) for a in accounts or []],
        )


class ConnectionListResponse(BaseModel):
    connections: list[ConnectionResponse]
    total_count: int


class ConnectionStatsResponse(BaseModel):
    total: int
    linked: int
    created: int
    suspended: int


class AccountStatsResponse(BaseModel):
    total: int
    active: int
    aggregator: int
    manual: int


class ConnectionStatusResponse(BaseModel):
    """Recent activity used by clients to notice a completed link."""

    checked_at: datetime
    has_recent_connection: bool
    has_recent_accounts: bool
    recent_connections: list[ConnectionResponse]
    recent_accounts: list[BankAccountResponse]
    connection_stats: ConnectionStatsResponse
    account_stats: AccountStatsResponse

    @classmethod
    def from_overview(
        cls,
        overview: ConnectionStatusOverview,
    ) -> ConnectionStatusResponse:
        stats = overview.connection_stats
        accounts = overview.account_stats
        return cls(
            checked_at=overview.checked_at,
            has_recent_connection=overview.has_recent_connection,
            has_recent_accounts=overview.has_recent_accounts,
            recent_connections=[
                ConnectionResponse.from_info(c) for c in overview.recent_connections
            ],
            recent_accounts=[
                BankAccountResponse.from_info(a) for a in overview.recent_accounts
            ],
            connection_stats=ConnectionStatsResponse(
                total=stats.total,
                linked=stats.linked,
                created=stats.created,
                suspended=stats.suspended,
            ),
            account_stats=AccountStatsResponse(
                total=accounts.total,
                active=accounts.active,
                aggregator=accounts.aggregator,
                manual=accounts.manual,
            ),
        )
