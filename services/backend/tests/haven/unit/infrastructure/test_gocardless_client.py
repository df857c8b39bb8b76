"""Tests for GoCardlessClient against a mocked HTTP transport."""

import asyncio
import json
from datetime import date

import httpx
import pytest
from pydantic import SecretStr

from haven.domain.banking.exceptions import (
    AggregatorApiError,
    AggregatorAuthenticationError,
    AggregatorNotConfiguredError,
)
from haven.domain.shared.exceptions import ErrorCode
from haven.infrastructure.integration.gocardless import (
    GoCardlessClient,
    InMemoryRequestQuota,
)

BASE_URL = "https://bankaccountdata.example.com/api/v2"

TOKEN_PAIR = {
    "access": "access-1",
    "access_expires": 86400,
    "refresh": "refresh-1",
    "refresh_expires": 2592000,
}


class FakeGoCardless:
    """Routes requests to canned responses and records what was called."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.token_responses: list[httpx.Response] = []

    def add(self, method: str, path: str, *responses: httpx.Response) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(path))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v2")
        responses = self.routes.get((request.method, path))
        if not responses:
            return httpx.Response(404, json={"detail": "Not found."})
        # Last response repeats
        return responses.pop(0) if len(responses) > 1 else responses[0]


@pytest.fixture
def api() -> FakeGoCardless:
    fake = FakeGoCardless()
    fake.add("POST", "/token/new/", httpx.Response(200, json=TOKEN_PAIR))
    return fake


@pytest.fixture
def client(api) -> GoCardlessClient:
    return GoCardlessClient(
        secret_id="secret-id",
        secret_key="secret-key",
        base_url=BASE_URL,
        transport=httpx.MockTransport(api),
        quota=InMemoryRequestQuota(limit=4),
    )


class TestConfiguration:
    @pytest.mark.parametrize(
        ("secret_id", "secret_key"),
        [(None, "k"), ("i", ""), (None, None)],
    )
    def test_missing_credentials_rejected(self, secret_id, secret_key):
        with pytest.raises(AggregatorNotConfiguredError) as exc_info:
            GoCardlessClient(secret_id=secret_id, secret_key=secret_key)

        assert exc_info.value.code == ErrorCode.AGGREGATOR_NOT_CONFIGURED

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("gocardless_secret_id", None),
            ("gocardless_secret_key", None),
            ("gocardless_secret_key", SecretStr("")),
        ],
    )
    def test_from_settings_requires_credentials(self, test_settings, field, value):
        settings = test_settings.model_copy(update={field: value})

        with pytest.raises(AggregatorNotConfiguredError):
            GoCardlessClient.from_settings(settings)

    def test_from_settings_uses_daily_limit(self, test_settings):
        settings = test_settings.model_copy(
            update={"gocardless_daily_request_limit": 2},
        )

        client = GoCardlessClient.from_settings(settings)

        assert client.get_remaining_requests("acc-1") == 2


class TestAuthentication:
    async def test_token_is_cached(self, client, api):
        api.add("GET", "/institutions/", httpx.Response(200, json=[]))

        await client.list_institutions("GB")
        await client.list_institutions("GB")

        assert api.count("/token/new/") == 1
        assert api.requests[-1].headers["Authorization"] == "Bearer access-1"

    async def test_concurrent_callers_share_one_exchange(self, client, api):
        api.add("GET", "/institutions/", httpx.Response(200, json=[]))

        await asyncio.gather(*(client.list_institutions("GB") for _ in range(5)))

        assert api.count("/token/new/") == 1
        assert api.count("/institutions/") == 5

    async def test_expired_access_token_is_refreshed(self, client, api):
        api.add(
            "POST",
            "/token/refresh/",
            httpx.Response(200, json={"access": "access-2", "access_expires": 86400}),
        )
        await client.get_access_token()
        client.token_cache.invalidate_access()

        token = await client.get_access_token()

        assert token == "access-2"
        assert api.count("/token/new/") == 1
        assert api.count("/token/refresh/") == 1
        assert json.loads(api.requests[-1].content) == {"refresh": "refresh-1"}

    async def test_rejected_refresh_falls_back_to_new_token(self, client, api):
        api.add("POST", "/token/refresh/", httpx.Response(401, json={"detail": "bad"}))
        await client.get_access_token()
        client.token_cache.invalidate_access()

        token = await client.get_access_token()

        assert token == "access-1"
        assert api.count("/token/new/") == 2

    async def test_bad_credentials(self, api):
        api.routes[("POST", "/token/new/")] = [
            httpx.Response(401, json={"summary": "Authentication failed"}),
        ]
        client = GoCardlessClient(
            "bad-id",
            "bad-key",
            base_url=BASE_URL,
            transport=httpx.MockTransport(api),
        )

        with pytest.raises(AggregatorAuthenticationError) as exc_info:
            await client.get_access_token()

        assert exc_info.value.code == ErrorCode.AGGREGATOR_AUTHENTICATION_FAILED
        assert not await client.validate_credentials()

    async def test_validate_credentials(self, client):
        assert await client.validate_credentials()

    async def test_unauthorized_response_drops_access_token(self, client, api):
        api.add(
            "GET",
            "/requisitions/req-1/",
            httpx.Response(401, json={"detail": "Token is invalid or expired"}),
        )
        await client.get_access_token()

        with pytest.raises(AggregatorApiError):
            await client.get_requisition("req-1")

        assert client.token_cache.access_token() is None


class TestEndpoints:
    async def test_list_institutions(self, client, api):
        api.add(
            "GET",
            "/institutions/",
            httpx.Response(
                200,
                json=[
                    {
                        "id": "MONZO_MONZGB2L",
                        "name": "Monzo",
                        "bic": "MONZGB2L",
                        "transaction_total_days": "730",
                        "countries": ["GB"],
                        "logo": "https://cdn.example.com/monzo.png",
                    },
                ],
            ),
        )

        institutions = await client.list_institutions("gb")

        assert institutions[0].id == "MONZO_MONZGB2L"
        assert institutions[0].transaction_total_days == 730
        assert api.requests[-1].url.params["country"] == "GB"

    async def test_create_requisition_body(self, client, api):
        api.add(
            "POST",
            "/requisitions/",
            httpx.Response(
                201,
                json={
                    "id": "req-1",
                    "status": "CR",
                    "link": "https://ob.gocardless.com/psd2/start/req-1",
                    "accounts": [],
                },
            ),
        )

        requisition = await client.create_requisition(
            institution_id="MONZO_MONZGB2L",
            redirect_url="https://haven.example.com/api/v1/connections/callback",
            reference="user-abc-1",
            agreement_id="agreement-1",
        )

        body = json.loads(api.requests[-1].content)
        assert body == {
            "redirect": "https://haven.example.com/api/v1/connections/callback",
            "institution_id": "MONZO_MONZGB2L",
            "user_language": "EN",
            "reference": "user-abc-1",
            "agreement": "agreement-1",
        }
        assert requisition.link == "https://ob.gocardless.com/psd2/start/req-1"

    async def test_create_end_user_agreement_body(self, client, api):
        api.add(
            "POST",
            "/agreements/enduser/",
            httpx.Response(
                201,
                json={"id": "agreement-1", "institution_id": "MONZO_MONZGB2L"},
            ),
        )

        agreement = await client.create_end_user_agreement(
            "MONZO_MONZGB2L",
            max_historical_days=180,
            access_valid_for_days=60,
        )

        body = json.loads(api.requests[-1].content)
        assert body["max_historical_days"] == 180
        assert body["access_valid_for_days"] == 60
        assert body["access_scope"] == ["balances", "details", "transactions"]
        assert agreement.id == "agreement-1"

    async def test_delete_requisition_accepts_empty_body(self, client, api):
        api.add("DELETE", "/requisitions/req-1/", httpx.Response(204))

        await client.delete_requisition("req-1")

        assert api.requests[-1].method == "DELETE"

    async def test_account_details_unwraps_account(self, client, api):
        api.add(
            "GET",
            "/accounts/acc-1/details/",
            httpx.Response(
                200,
                json={
                    "account": {
                        "resourceId": "acc-1",
                        "iban": "GB33BUKB20201555555555",
                        "currency": "GBP",
                        "cashAccountType": "CACC",
                    },
                },
            ),
        )

        details = await client.get_account_details("acc-1")

        assert details.iban == "GB33BUKB20201555555555"
        assert details.cash_account_type == "CACC"

    async def test_balances(self, client, api):
        api.add(
            "GET",
            "/accounts/acc-1/balances/",
            httpx.Response(
                200,
                json={
                    "balances": [
                        {
                            "balanceAmount": {"amount": "12.34", "currency": "GBP"},
                            "balanceType": "interimAvailable",
                        },
                    ],
                },
            ),
        )

        balances = await client.get_account_balances("acc-1")

        assert len(balances) == 1
        assert balances[0].is_interim_available

    async def test_transactions_pass_date_window(self, client, api):
        api.add(
            "GET",
            "/accounts/acc-1/transactions/",
            httpx.Response(
                200,
                json={
                    "transactions": {
                        "booked": [{"transactionId": "t1"}],
                        "pending": [],
                    },
                },
            ),
        )

        page = await client.get_account_transactions(
            "acc-1",
            date_from=date(2026, 9, 19),
            date_to=date(2026, 10, 19),
        )

        params = api.requests[-1].url.params
        assert params["date_from"] == "2026-09-19"
        assert params["date_to"] == "2026-10-19"
        assert page.booked == [{"transactionId": "t1"}]


class TestErrors:
    async def test_error_detail_from_body(self, client, api):
        api.add(
            "POST",
            "/requisitions/",
            httpx.Response(
                400,
                json={
                    "institution_id": {
                        "summary": "Unknown Institution ID",
                        "detail": "Get Institution IDs from /institutions/",
                    },
                },
            ),
        )

        with pytest.raises(AggregatorApiError) as exc_info:
            await client.create_requisition("NOPE", "https://haven.example.com/cb")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Get Institution IDs from /institutions/"
        assert exc_info.value.details["path"] == "/requisitions/"

    async def test_rate_limited_response(self, client, api):
        api.add(
            "GET",
            "/accounts/acc-1/balances/",
            httpx.Response(429, json={"summary": "Rate limit exceeded"}),
        )

        with pytest.raises(AggregatorApiError) as exc_info:
            await client.get_account_balances("acc-1")

        assert exc_info.value.code == ErrorCode.AGGREGATOR_RATE_LIMITED

    async def test_network_failure_has_status_zero(self, api):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/token/new/"):
                return httpx.Response(200, json=TOKEN_PAIR)
            raise httpx.ConnectError("connection refused", request=request)

        client = GoCardlessClient(
            "id",
            "key",
            base_url=BASE_URL,
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(AggregatorApiError) as exc_info:
            await client.get_requisition("req-1")

        assert exc_info.value.status_code == 0


class TestRateLimit:
    def test_quota_is_consumed_per_account(self, client):
        for _ in range(4):
            assert client.check_rate_limit("acc-1")

        assert not client.check_rate_limit("acc-1")
        assert client.get_remaining_requests("acc-1") == 0
        assert client.get_remaining_requests("acc-2") == 4
