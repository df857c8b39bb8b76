"""Shared fixtures for the haven test suite.

Provides an in-memory SQLite database (shared by every session of a test via
``StaticPool``) and ``FakeAggregator``, an in-process stand-in for the
GoCardless API with a real request quota.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from haven.application.context import UserContext
from haven.domain.banking.exceptions import AggregatorApiError
from haven.domain.banking.ports import DEFAULT_ACCESS_SCOPE, AggregatorPort
from haven.domain.banking.value_objects import (
    AccountDetails,
    Balance,
    EndUserAgreement,
    Institution,
    Requisition,
    TransactionPage,
)
from haven.infrastructure.integration.gocardless import InMemoryRequestQuota
from haven.infrastructure.persistence.sqlalchemy.engine import create_engine
from haven.infrastructure.persistence.sqlalchemy.models import Base
from haven.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)

TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")
OTHER_USER_ID = UUID("87654321-4321-8765-4321-876543218765")
TEST_USER_EMAIL = "test@example.com"

TEST_INSTITUTION_ID = "TESTBANK_TBGB2L"
TEST_INSTITUTION_NAME = "Test Bank"


class FakeAggregator(AggregatorPort):
    """In-memory aggregator.

    Requisitions start in ``CR``; ``link()`` moves one to ``LN`` and gives
    every account default details, one balance and two booked transactions.
    ``calls`` records the data requests in order.
    """

    def __init__(self, daily_limit: int = 4):
        self.institutions = [
            Institution(
                id=TEST_INSTITUTION_ID,
                name=TEST_INSTITUTION_NAME,
                countries=["GB"],
            ),
            Institution(id="ALPHA_ALPHGB2L", name="alpha bank", countries=["GB"]),
            Institution(id="ZULU_ZULUGB2L", name="Zulu Savings", countries=["GB"]),
        ]
        self.requisitions: dict[str, Requisition] = {}
        self.agreements: list[EndUserAgreement] = []
        self.details: dict[str, AccountDetails] = {}
        self.balances: dict[str, list[Balance]] = {}
        self.transactions: dict[str, TransactionPage] = {}
        self.failing_accounts: set[str] = set()
        self.deleted: list[str] = []
        self.calls: list[tuple[str, str]] = []
        self.quota = InMemoryRequestQuota(limit=daily_limit)
        self._counter = 0

    # -- test helpers -------------------------------------------------------

    def link(
        self,
        requisition_id: str,
        accounts: tuple[str, ...] = ("acc-current", "acc-savings"),
    ) -> None:
        self.set_status(requisition_id, "LN", accounts)
        for account_id in accounts:
            self.add_account(account_id)

    def set_status(
        self,
        requisition_id: str,
        status: str,
        accounts: tuple[str, ...] = (),
    ) -> None:
        current = self.requisitions[requisition_id]
        self.requisitions[requisition_id] = current.model_copy(
            update={"status": status, "accounts": list(accounts)},
        )

    def add_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        booked: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        if account_id not in self.details:
            self.details[account_id] = AccountDetails.model_validate(
                {
                    "resourceId": account_id,
                    "iban": f"GB33BUKB2020155555{_digits(account_id)}",
                    "currency": "GBP",
                    "name": name or account_id.replace("acc-", "").title(),
                    "cashAccountType": "SVGS" if "savings" in account_id else "CACC",
                },
            )
        self.balances.setdefault(
            account_id,
            [
                Balance.model_validate(
                    {
                        "balanceAmount": {"amount": "1250.40", "currency": "GBP"},
                        "balanceType": "interimAvailable",
                    },
                ),
            ],
        )
        if booked is not None or account_id not in self.transactions:
            self.transactions[account_id] = TransactionPage(
                booked=booked if booked is not None else default_booked(account_id),
            )

    # -- AggregatorPort -----------------------------------------------------

    async def list_institutions(self, country_code: str) -> list[Institution]:
        return [i for i in self.institutions if country_code in i.countries]

    async def create_end_user_agreement(
        self,
        institution_id: str,
        max_historical_days: int = 90,
        access_valid_for_days: int = 90,
        access_scope: tuple[str, ...] = DEFAULT_ACCESS_SCOPE,
    ) -> EndUserAgreement:
        agreement = EndUserAgreement(
            id=f"agreement-{len(self.agreements) + 1}",
            institution_id=institution_id,
            max_historical_days=max_historical_days,
            access_valid_for_days=access_valid_for_days,
            access_scope=list(access_scope),
        )
        self.agreements.append(agreement)
        return agreement

    async def create_requisition(
        self,
        institution_id: str,
        redirect_url: str,
        language: str = "EN",
        reference: Optional[str] = None,
        agreement_id: Optional[str] = None,
    ) -> Requisition:
        self._counter += 1
        requisition_id = f"req-{self._counter}"
        requisition = Requisition(
            id=requisition_id,
            status="CR",
            link=f"https://ob.gocardless.com/psd2/start/{requisition_id}",
            institution_id=institution_id,
            agreement=agreement_id,
            reference=reference,
            redirect=redirect_url,
        )
        self.requisitions[requisition_id] = requisition
        return requisition

    async def get_requisition(self, requisition_id: str) -> Requisition:
        self.calls.append(("get_requisition", requisition_id))
        if requisition_id not in self.requisitions:
            raise AggregatorApiError(
                404,
                "Not found.",
                _requisition_path(requisition_id),
            )
        return self.requisitions[requisition_id]

    async def delete_requisition(self, requisition_id: str) -> None:
        if requisition_id not in self.requisitions:
            raise AggregatorApiError(
                404,
                "Not found.",
                _requisition_path(requisition_id),
            )
        del self.requisitions[requisition_id]
        self.deleted.append(requisition_id)

    async def get_account_details(self, account_id: str) -> AccountDetails:
        self.calls.append(("details", account_id))
        self._raise_if_failing(account_id)
        return self.details[account_id]

    async def get_account_balances(self, account_id: str) -> list[Balance]:
        self.calls.append(("balances", account_id))
        self._raise_if_failing(account_id)
        return self.balances.get(account_id, [])

    async def get_account_transactions(
        self,
        account_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> TransactionPage:
        self.calls.append(("transactions", account_id))
        self._raise_if_failing(account_id)
        return self.transactions.get(account_id, TransactionPage())

    def check_rate_limit(self, account_id: str) -> bool:
        return self.quota.check_and_consume(account_id)

    def get_remaining_requests(self, account_id: str) -> int:
        return self.quota.remaining(account_id)

    async def validate_credentials(self) -> bool:
        return True

    def _raise_if_failing(self, account_id: str) -> None:
        if account_id in self.failing_accounts:
            raise AggregatorApiError(500, "Internal error", f"/accounts/{account_id}/")


def _requisition_path(requisition_id: str) -> str:
    return f"/requisitions/{requisition_id}/"


def _digits(account_id: str) -> str:
    return f"{sum(map(ord, account_id)) % 10000:04d}"


def default_booked(account_id: str) -> list[dict[str, Any]]:
    return [
        {
            "transactionId": f"{account_id}-tx-1",
            "bookingDate": "2026-10-01",
            "valueDate": "2026-10-01",
            "transactionAmount": {"amount": "-42.50", "currency": "GBP"},
            "creditorName": "Corner Shop",
            "remittanceInformationUnstructured": "Groceries",
        },
        {
            "transactionId": f"{account_id}-tx-2",
            "bookingDate": "2026-10-02",
            "transactionAmount": {"amount": "2100.00", "currency": "GBP"},
            "debtorName": "Employer Ltd",
            "remittanceInformationUnstructured": "Salary",
        },
    ]


@pytest.fixture
def user_context() -> UserContext:
    return UserContext.from_values(TEST_USER_ID, TEST_USER_EMAIL)


@pytest.fixture
def fake_aggregator() -> FakeAggregator:
    return FakeAggregator()


@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def repo_factory(db_session, user_context, fake_aggregator, test_settings):
    """Repository factory for the test user, wired to the fake aggregator."""
    return SQLAlchemyRepositoryFactory(
        session=db_session,
        user_context=user_context,
        aggregator_provider=lambda: fake_aggregator,
        settings=test_settings,
    )


@pytest.fixture
def system_repo_factory(db_session, fake_aggregator, test_settings):
    """Repository factory without a user (callback, scheduled sync)."""
    return SQLAlchemyRepositoryFactory(
        session=db_session,
        aggregator_provider=lambda: fake_aggregator,
        settings=test_settings,
    )
