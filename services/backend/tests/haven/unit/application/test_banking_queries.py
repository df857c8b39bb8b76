"""Tests for the connection and sync read queries."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from haven.application.queries import (
    ConnectionStatusQuery,
    ListConnectionsQuery,
    ListInstitutionsQuery,
    ResolveCallbackQuery,
    SyncStatusQuery,
)
from haven.domain.banking.entities import BankAccount
from haven.domain.banking.exceptions import ConnectionNotFoundError
from haven.domain.banking.value_objects import CallbackReference, ConnectionType
from haven.domain.shared.exceptions import ErrorCode, ValidationError

TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")
OTHER_USER_ID = UUID("87654321-4321-8765-4321-876543218765")
LINKED_AT = datetime(2026, 10, 18, 6, 0, tzinfo=timezone.utc)


async def _connection(repo, requisition_id, user_id=TEST_USER_ID, linked_at=None):
    connection = await repo.create(
        user_id=user_id,
        requisition_id=requisition_id,
        institution_id="TESTBANK_TBGB2L",
        institution_name="Test Bank",
        country_code="GB",
        reference=str(CallbackReference.create(user_id)),
    )
    if linked_at is not None:
        connection = await repo.mark_linked(requisition_id, linked_at)
    return connection


def _account(external_id, connection_id=None, name="Current") -> BankAccount:
    return BankAccount(
        user_id=TEST_USER_ID,
        name=name,
        bank_name="Test Bank",
        connection_type=ConnectionType.AGGREGATOR,
        external_account_id=external_id,
        connection_id=connection_id,
    )


class TestResolveCallback:
    async def test_requisition_id_wins(self, system_repo_factory):
        repo = system_repo_factory.connection_repository()
        await _connection(repo, "req-1")

        connection = await ResolveCallbackQuery.from_factory(
            system_repo_factory,
        ).execute("req-1")

        assert connection.requisition_id == "req-1"

    async def test_reference_resolves_most_recent_created(self, system_repo_factory):
        repo = system_repo_factory.connection_repository()
        await _connection(repo, "req-linked", linked_at=LINKED_AT)
        await _connection(repo, "req-pending")
        reference = str(CallbackReference.create(TEST_USER_ID))

        connection = await ResolveCallbackQuery(repo).execute(f"  {reference} ")

        assert connection.requisition_id == "req-pending"

    async def test_reference_without_created_connection(self, system_repo_factory):
        repo = system_repo_factory.connection_repository()
        await _connection(repo, "req-linked", linked_at=LINKED_AT)
        reference = str(CallbackReference.create(TEST_USER_ID))

        with pytest.raises(ConnectionNotFoundError) as exc_info:
            await ResolveCallbackQuery(repo).execute(reference)

        assert exc_info.value.code == ErrorCode.CONNECTION_NOT_FOUND

    @pytest.mark.parametrize("ref", ["", "   ", "req-missing", "user-nope-123"])
    async def test_unknown_ref(self, system_repo_factory, ref):
        repo = system_repo_factory.connection_repository()
        await _connection(repo, "req-1")

        with pytest.raises(ConnectionNotFoundError):
            await ResolveCallbackQuery(repo).execute(ref)


class TestListInstitutions:
    async def test_sorted_case_insensitively(self, repo_factory):
        institutions = await ListInstitutionsQuery.from_factory(repo_factory).execute(
            "gb",
        )

        assert [i.name for i in institutions] == [
            "alpha bank",
            "Test Bank",
            "Zulu Savings",
        ]

    async def test_unsupported_country_is_empty(self, repo_factory):
        query = ListInstitutionsQuery.from_factory(repo_factory)

        assert await query.execute("DE") == []

    async def test_invalid_country(self, repo_factory):
        query = ListInstitutionsQuery.from_factory(repo_factory)

        with pytest.raises(ValidationError) as exc_info:
            await query.execute("GBR")

        assert exc_info.value.code == ErrorCode.INVALID_COUNTRY_CODE


class TestListConnections:
    async def test_connections_with_their_accounts(self, repo_factory):
        repo = repo_factory.connection_repository()
        linked = await _connection(repo, "req-1", linked_at=LINKED_AT)
        await _connection(repo, "req-theirs", user_id=OTHER_USER_ID)
        await repo_factory.bank_account_repository().save(
            _account("acc-current", linked.id),
        )

        result = await ListConnectionsQuery.from_factory(repo_factory).execute()

        assert len(result) == 1
        assert result[0].connection.status == "linked"
        assert [a.name for a in result[0].accounts] == ["Current"]


class TestConnectionStatus:
    async def test_recent_activity(self, repo_factory):
        repo = repo_factory.connection_repository()
        linked = await _connection(repo, "req-1", linked_at=LINKED_AT)
        await _connection(repo, "req-2")
        accounts = repo_factory.bank_account_repository()
        await accounts.save(_account("acc-current", linked.id))
        await accounts.save(
            BankAccount(user_id=TEST_USER_ID, name="Cash", bank_name="Wallet"),
        )

        overview = await ConnectionStatusQuery.from_factory(repo_factory).execute()

        assert overview.has_recent_connection
        assert len(overview.recent_connections) == 2
        assert overview.connection_stats.total == 2
        assert overview.connection_stats.linked == 1
        assert overview.connection_stats.created == 1
        assert overview.account_stats.aggregator == 1
        assert overview.account_stats.manual == 1

    async def test_old_activity_is_not_recent(self, repo_factory):
        await _connection(repo_factory.connection_repository(), "req-1")
        later = datetime.now(timezone.utc) + timedelta(minutes=10)
        query = ConnectionStatusQuery(
            connection_repo=repo_factory.connection_repository(),
            bank_account_repo=repo_factory.bank_account_repository(),
            user_id=TEST_USER_ID,
            clock=lambda: later,
        )

        overview = await query.execute()

        assert not overview.has_recent_connection
        assert not overview.has_recent_accounts
        assert overview.connection_stats.total == 1


class TestSyncStatus:
    async def test_remaining_requests_and_next_sync(
        self,
        repo_factory,
        fake_aggregator,
    ):
        linked = await _connection(
            repo_factory.connection_repository(),
            "req-1",
            linked_at=LINKED_AT,
        )
        accounts = repo_factory.bank_account_repository()
        await accounts.save(_account("acc-current", linked.id))
        await accounts.save(_account("acc-savings", linked.id, name="Savings"))
        for _ in range(4):
            fake_aggregator.check_rate_limit("acc-current")
        fake_aggregator.check_rate_limit("acc-savings")

        status = await SyncStatusQuery.from_factory(repo_factory).execute()

        assert status.daily_limit == 4
        by_name = {a.account_name: a for a in status.accounts}
        assert by_name["Current"].remaining_requests == 0
        assert not by_name["Current"].can_sync_now
        assert by_name["Savings"].remaining_requests == 3
        assert by_name["Savings"].last_sync_at == LINKED_AT
        assert by_name["Savings"].next_available_sync == LINKED_AT + timedelta(
            hours=24,
        )
        assert status.total_remaining_requests == 3
        assert status.can_sync_any

    async def test_no_accounts(self, repo_factory):
        status = await SyncStatusQuery.from_factory(repo_factory).execute()

        assert status.accounts == []
        assert not status.can_sync_any
