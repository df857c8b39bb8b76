"""Sync router for balance and transaction synchronization endpoints."""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from haven.application.commands import AccountSyncCommand, DailySyncCommand
from haven.application.queries import SyncStatusQuery
from haven.domain.shared.time import utc_now
from haven.presentation.api.dependencies import (
    RepoFactory,
    SystemRepoFactory,
    verify_cron_secret,
)
from haven.presentation.api.schemas.sync import (
    DailySyncResponse,
    SyncRunRequest,
    SyncRunResponse,
    SyncStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DAILY_SYNC_TIME = time(6, 0, tzinfo=timezone.utc)


def next_daily_sync(now: datetime) -> datetime:
    """Next 06:00 UTC strictly after ``now``."""
    now = now.astimezone(timezone.utc)
    candidate = datetime.combine(now.date(), DAILY_SYNC_TIME)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


@router.post(
    "",
    summary="Sync linked accounts",
    responses={
        200: {"description": "Sync finished; check success and errors"},
        404: {"description": "account_id is not one of the user's accounts"},
        503: {"description": "GoCardless is not configured"},
    },
)
async def run_sync(
    factory: RepoFactory,
    request: Optional[SyncRunRequest] = None,
) -> SyncRunResponse:
    """
    Refresh balances and the last days of transactions of linked accounts.

    Each account is synced independently: one failing or rate-limited
    account is reported in ``errors`` while the others are still synced.
    """
    account_id = request.account_id if request else None
    command = AccountSyncCommand.from_factory(factory)
    try:
        result = await command.execute(account_id=account_id)
        await factory.session.commit()
    except Exception:
        await factory.session.rollback()
        raise

    return SyncRunResponse.from_result(result)


@router.get("/status", summary="Per-account request quota")
async def sync_status(factory: RepoFactory) -> SyncStatusResponse:
    status = await SyncStatusQuery.from_factory(factory).execute()
    return SyncStatusResponse.from_status(status)


@router.post(
    "/daily",
    summary="Scheduled sync of all users",
    dependencies=[Depends(verify_cron_secret)],
    responses={
        200: {"description": "Daily sync finished"},
        401: {"description": "Wrong cron secret"},
        503: {"description": "Cron secret not configured"},
    },
)
async def run_daily_sync(factory: SystemRepoFactory) -> DailySyncResponse:
    """Sync every user with a linked connection. Called by the scheduler."""
    command = DailySyncCommand.from_factory(factory)
    try:
        result = await command.execute()
        await factory.session.commit()
    except Exception:
        await factory.session.rollback()
        raise

    return DailySyncResponse(
        **result.to_dict(),
        next_scheduled_sync=next_daily_sync(utc_now()),
    )
