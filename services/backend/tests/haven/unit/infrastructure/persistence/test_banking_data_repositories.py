"""Tests for the bank account, balance and transaction repositories on SQLite."""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from haven.domain.banking.entities import BankAccount
from haven.domain.banking.value_objects import (
    AccountBalance,
    ConnectionType,
    FinancialTransaction,
    TransactionType,
)
from haven.infrastructure.persistence.sqlalchemy.repositories import (
    AccountBalanceRepositorySQLAlchemy,
    BankAccountRepositorySQLAlchemy,
    FinancialTransactionRepositorySQLAlchemy,
)

TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")
OTHER_USER_ID = UUID("87654321-4321-8765-4321-876543218765")


def _aggregator_account(
    external_id: str,
    connection_id: UUID | None = None,
    user_id: UUID = TEST_USER_ID,
    name: str = "Current",
) -> BankAccount:
    return BankAccount(
        user_id=user_id,
        name=name,
        bank_name="Test Bank",
        connection_type=ConnectionType.AGGREGATOR,
        external_account_id=external_id,
        connection_id=connection_id,
    )


@pytest.fixture
def accounts(db_session) -> BankAccountRepositorySQLAlchemy:
    return BankAccountRepositorySQLAlchemy(db_session)


@pytest.fixture
def balances(db_session) -> AccountBalanceRepositorySQLAlchemy:
    return AccountBalanceRepositorySQLAlchemy(db_session)


@pytest.fixture
def transactions(db_session) -> FinancialTransactionRepositorySQLAlchemy:
    return FinancialTransactionRepositorySQLAlchemy(db_session)


class TestBankAccountRepository:
    async def test_save_and_find(self, accounts):
        account = _aggregator_account("acc-1", connection_id=uuid4())
        await accounts.save(account)

        by_external = await accounts.find_by_external_id("acc-1")
        by_id = await accounts.find_by_id(TEST_USER_ID, account.id)

        assert by_external is not None
        assert by_external.id == account.id
        assert by_external.connection_type == ConnectionType.AGGREGATOR
        assert by_id is not None
        assert await accounts.find_by_id(OTHER_USER_ID, account.id) is None

    async def test_save_updates_existing(self, accounts):
        account = _aggregator_account("acc-1")
        await accounts.save(account)

        account.deactivate()
        await accounts.save(account)

        found = await accounts.find_by_external_id("acc-1")
        assert found is not None
        assert not found.is_active

    async def test_active_aggregator_accounts(self, accounts):
        current = _aggregator_account("acc-1", name="Current")
        inactive = _aggregator_account("acc-2", name="Old")
        inactive.deactivate()
        manual = BankAccount(user_id=TEST_USER_ID, name="Cash", bank_name="Wallet")
        other_user = _aggregator_account("acc-3", user_id=OTHER_USER_ID)
        for account in (current, inactive, manual, other_user):
            await accounts.save(account)

        found = await accounts.find_active_aggregator_accounts(TEST_USER_ID)
        single = await accounts.find_active_aggregator_accounts(
            TEST_USER_ID,
            current.id,
        )

        assert [a.id for a in found] == [current.id]
        assert [a.id for a in single] == [current.id]

    async def test_deactivate_for_connection(self, accounts):
        connection_id = uuid4()
        linked = _aggregator_account("acc-1", connection_id=connection_id)
        legacy = _aggregator_account("acc-2", connection_id=None)
        elsewhere = _aggregator_account("acc-3", connection_id=uuid4())
        manual = BankAccount(user_id=TEST_USER_ID, name="Cash", bank_name="Wallet")
        for account in (linked, legacy, elsewhere, manual):
            await accounts.save(account)

        count = await accounts.deactivate_for_connection(TEST_USER_ID, connection_id)

        assert count == 2
        active = await accounts.find_active_aggregator_accounts(TEST_USER_ID)
        assert [a.id for a in active] == [elsewhere.id]
        assert (await accounts.find_by_id(TEST_USER_ID, manual.id)).is_active


class TestAccountBalanceRepository:
    async def test_one_snapshot_per_day(self, accounts, balances):
        account = _aggregator_account("acc-1")
        await accounts.save(account)

        for amount in ("100.00", "120.50"):
            await balances.upsert(
                AccountBalance(
                    account_id=account.id,
                    balance=Decimal(amount),
                    currency="GBP",
                    balance_date=date(2026, 10, 19),
                ),
            )
        await balances.upsert(
            AccountBalance(
                account_id=account.id,
                balance=Decimal("90.00"),
                currency="GBP",
                balance_date=date(2026, 10, 18),
            ),
        )

        stored = await balances.find_by_account(account.id)

        assert [(b.balance_date, b.balance) for b in stored] == [
            (date(2026, 10, 19), Decimal("120.50")),
            (date(2026, 10, 18), Decimal("90.00")),
        ]


class TestFinancialTransactionRepository:
    def _transaction(self, account_id: UUID, amount: str) -> FinancialTransaction:
        return FinancialTransaction(
            account_id=account_id,
            external_transaction_id="tx-1",
            amount=Decimal(amount),
            currency="GBP",
            transaction_date=date(2026, 10, 1),
            description="Groceries",
            transaction_type=TransactionType.DEBIT,
        )

    async def test_upsert_is_idempotent(self, accounts, transactions):
        account = _aggregator_account("acc-1")
        await accounts.save(account)

        await transactions.upsert(self._transaction(account.id, "-42.50"))
        await transactions.upsert(self._transaction(account.id, "-42.00"))

        stored = await transactions.find_by_account(account.id)
        assert len(stored) == 1
        assert stored[0].amount == Decimal("-42.00")
        assert stored[0].external_transaction_id == "tx-1"

    async def test_upsert_requires_external_id(self, transactions):
        transaction = FinancialTransaction(
            account_id=uuid4(),
            amount=Decimal("1.00"),
            currency="GBP",
            transaction_date=date(2026, 10, 1),
            transaction_type=TransactionType.CREDIT,
        )

        with pytest.raises(ValueError, match="external id"):
            await transactions.upsert(transaction)
