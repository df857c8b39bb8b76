"""Sync schemas for API request/response models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from haven.application.dtos.integration import SyncResult, SyncStatus


class SyncRunRequest(BaseModel):
    """Request schema for syncing aggregator accounts.

    Without ``account_id`` every active aggregator account of the user is
    synced.
    """

    account_id: Optional[UUID] = Field(
        None,
        description="Sync only this account (default: all linked accounts)",
    )


class SyncRunResponse(BaseModel):
    """Outcome of a sync run.

    ``success`` is False as soon as one account recorded an error; the
    other accounts are still synced.
    """

    success: bool
    message: str
    accounts_synced: int
    transactions_synced: int
    balances_synced: int
    errors: list[str]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "message": "Synced 2 account(s) with 1 error(s)",
                "accounts_synced": 2,
                "transactions_synced": 41,
                "balances_synced": 2,
                "errors": ["Rate limit exceeded for account Monzo Current"],
            },
        },
    )

    @classmethod
    def from_result(cls, result: SyncResult) -> SyncRunResponse:
        return cls(
            success=result.success,
            message=result.message,
            accounts_synced=result.accounts_synced,
            transactions_synced=result.transactions_synced,
            balances_synced=result.balances_synced,
            errors=list(result.errors),
        )


class AccountSyncStatusResponse(BaseModel):
    account_id: UUID
    account_name: str
    bank_name: str
    remaining_requests: int
    can_sync_now: bool
    last_sync_at: Optional[datetime]
    next_available_sync: Optional[datetime]


class SyncStatusResponse(BaseModel):
    daily_limit: int
    total_remaining_requests: int
    can_sync_any: bool
    accounts: list[AccountSyncStatusResponse]

    @classmethod
    def from_status(cls, status: SyncStatus) -> SyncStatusResponse:
        return cls(
            daily_limit=status.daily_limit,
            total_remaining_requests=status.total_remaining_requests,
            can_sync_any=status.can_sync_any,
            accounts=[
                AccountSyncStatusResponse(
                    account_id=a.account_id,
                    account_name=a.account_name,
                    bank_name=a.bank_name,
                    remaining_requests=a.remaining_requests,
                    can_sync_now=a.can_sync_now,
                    last_sync_at=a.last_sync_at,
                    next_available_sync=a.next_available_sync,
                )
                for a in status.accounts
            ],
        )


class DailySyncResponse(BaseModel):
    """Summary of the scheduled sync over all users."""

    started_at: datetime
    finished_at: Optional[datetime]
    users_processed: int
    successful_syncs: int
    failed_syncs: int
    connections_expired: int
    total_accounts_synced: int
    total_transactions_synced: int
    errors: list[str]
    next_scheduled_sync: datetime
