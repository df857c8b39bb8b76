"""Tests for the sync result DTOs."""

from datetime import datetime, timezone
from uuid import UUID

import pytest

from haven.application.dtos.integration import (
    DailySyncResult,
    SyncResult,
    UserSyncOutcome,
)
from haven.domain.banking.exceptions import PartialSyncError
from haven.domain.shared.exceptions import ErrorCode

USER_A = UUID("12345678-1234-5678-1234-567812345678")
USER_B = UUID("87654321-4321-8765-4321-876543218765")
STARTED_AT = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)


class TestSyncResult:
    def test_nothing_to_sync_is_success(self):
        result = SyncResult()

        assert result.success
        assert result.message == "Synced 0 account(s) with 0 transaction(s)"
        result.raise_for_errors()

    def test_success_message(self):
        result = SyncResult(accounts_synced=2, transactions_synced=7)

        assert result.message == "Synced 2 account(s) with 7 transaction(s)"

    def test_errors_make_the_run_fail(self):
        result = SyncResult(accounts_synced=1, errors=["Account Savings: boom"])

        assert not result.success
        assert result.message == "Synced 1 account(s) with 1 error(s)"

    def test_raise_for_errors(self):
        result = SyncResult(errors=["a", "b"])

        with pytest.raises(PartialSyncError) as exc_info:
            result.raise_for_errors()

        assert exc_info.value.code == ErrorCode.PARTIAL_SYNC_FAILURE
        assert exc_info.value.errors == ["a", "b"]

    def test_to_dict(self):
        result = SyncResult(
            accounts_synced=1,
            transactions_synced=3,
            balances_synced=1,
        )

        assert result.to_dict() == {
            "success": True,
            "accounts_synced": 1,
            "transactions_synced": 3,
            "balances_synced": 1,
            "errors": [],
        }


class TestDailySyncResult:
    def test_totals(self):
        result = DailySyncResult(
            started_at=STARTED_AT,
            connections_expired=1,
            outcomes=[
                UserSyncOutcome(USER_A, True, 2, 5),
                UserSyncOutcome(USER_B, False, 1, 2, error="1 account failed"),
            ],
        )

        assert result.users_processed == 2
        assert result.successful_syncs == 1
        assert result.failed_syncs == 1
        assert result.total_accounts_synced == 3
        assert result.total_transactions_synced == 7
        assert result.errors == [f"User {USER_B}: 1 account failed"]

    def test_to_dict(self):
        result = DailySyncResult(started_at=STARTED_AT)

        data = result.to_dict()

        assert data["started_at"] == "2026-10-19T06:00:00+00:00"
        assert data["finished_at"] is None
        assert data["users_processed"] == 0
        assert data["errors"] == []
