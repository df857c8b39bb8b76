"""Fixtures for API tests.

The app runs in-process through ``httpx.ASGITransport`` against the shared
in-memory SQLite database and the fake aggregator. Each request gets its
own session, as in production.
"""

from datetime import timedelta
from uuid import UUID

import httpx
import pytest
import pytest_asyncio

from haven.domain.banking.exceptions import AggregatorNotConfiguredError
from haven.presentation.api.app import create_app
from haven.presentation.api.config import API_V1_PREFIX
from haven.presentation.api.dependencies import (
    get_aggregator_provider,
    get_db_session,
)
from haven_auth import JWTService

API_USER_ID = UUID("12345678-1234-5678-1234-567812345678")
API_USER_EMAIL = "test@example.com"


def _build_app(settings, session_maker, aggregator_provider):
    app = create_app(settings=settings)

    async def override_get_db_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_aggregator_provider] = lambda: aggregator_provider
    return app


@pytest.fixture
def api_v1_prefix() -> str:
    """Get the API v1 prefix for building URLs."""
    return API_V1_PREFIX


@pytest.fixture
def jwt_service(test_settings) -> JWTService:
    return JWTService(test_settings.jwt_secret_key.get_secret_value())


@pytest.fixture
def auth_headers(jwt_service) -> dict:
    """Bearer headers of the test user."""
    token = jwt_service.create_access_token(API_USER_ID, API_USER_EMAIL)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def expired_auth_headers(jwt_service) -> dict:
    token = jwt_service.create_access_token(
        API_USER_ID,
        expires_delta=timedelta(seconds=-1),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def cron_headers(test_settings) -> dict:
    return {
        "Authorization": f"Bearer {test_settings.cron_secret.get_secret_value()}",
    }


@pytest.fixture
def api_app(test_settings, session_maker, fake_aggregator):
    return _build_app(test_settings, session_maker, lambda: fake_aggregator)


@pytest_asyncio.fixture
async def test_client(api_app):
    """Async client talking to the app in-process."""
    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
    ) as client:
        yield client


@pytest_asyncio.fixture
async def unconfigured_client(test_settings, session_maker):
    """Client of an app whose GoCardless credentials are missing."""

    def missing_credentials():
        raise AggregatorNotConfiguredError()

    settings = test_settings.model_copy(
        update={"gocardless_secret_id": None, "cron_secret": None},
    )
    app = _build_app(settings, session_maker, missing_credentials)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client
