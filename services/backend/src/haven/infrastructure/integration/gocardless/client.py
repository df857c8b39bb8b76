"""HTTP client for the GoCardless Bank Account Data API."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Optional

import httpx

from haven.domain.banking.exceptions import (
    AggregatorApiError,
    AggregatorAuthenticationError,
    AggregatorNotConfiguredError,
)
from haven.domain.banking.ports import (
    DEFAULT_ACCESS_SCOPE,
    AggregatorPort,
    RequestQuota,
)
from haven.domain.banking.value_objects import (
    AccountDetails,
    Balance,
    EndUserAgreement,
    Institution,
    Requisition,
    TransactionPage,
)
from haven.infrastructure.integration.gocardless.request_quota import (
    InMemoryRequestQuota,
)
from haven.infrastructure.integration.gocardless.token_cache import (
    TokenCache,
    TokenGrant,
)

if TYPE_CHECKING:
    from haven_config import Settings

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://bankaccountdata.gocardless.com/api/v2"

_AUTH_FAILURE_STATUSES = (401, 403)


class GoCardlessClient(AggregatorPort):
    """Async wrapper around the GoCardless Bank Account Data REST API.

    The client authenticates with a secret id/key pair, caches the issued
    token pair in a ``TokenCache`` and tracks per-account request quotas in
    a ``RequestQuota``. Both are injectable so several clients (or tests)
    can share or replace them.

    Parameters
    ----------
    secret_id
        GoCardless user secret id
    secret_key
        GoCardless user secret key
    base_url
        API root, including the version segment
    timeout
        Per-request timeout in seconds
    quota
        Request quota keyed by external account id
    token_cache
        Token storage shared by concurrent callers
    transport
        Optional httpx transport (used by tests)

    Raises
    ------
    AggregatorNotConfiguredError
        If either credential is missing
    """

    def __init__(  # NOQA: PLR0913
        self,
        secret_id: str | None,
        secret_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        quota: RequestQuota | None = None,
        token_cache: TokenCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not secret_id or not secret_key:
            raise AggregatorNotConfiguredError()

        self._secret_id = secret_id
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._quota = quota or InMemoryRequestQuota()
        self._tokens = token_cache or TokenCache()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        quota: RequestQuota | None = None,
    ) -> GoCardlessClient:
        secret_id = settings.gocardless_secret_id
        secret_key = settings.gocardless_secret_key
        if (
            not settings.gocardless_configured
            or secret_id is None
            or secret_key is None
        ):
            raise AggregatorNotConfiguredError()
        return cls(
            secret_id=secret_id.get_secret_value(),
            secret_key=secret_key.get_secret_value(),
            base_url=settings.gocardless_base_url,
            timeout=settings.gocardless_timeout,
            quota=quota
            or InMemoryRequestQuota(limit=settings.gocardless_daily_request_limit),
        )

    @property
    def quota(self) -> RequestQuota:
        return self._quota

    @property
    def token_cache(self) -> TokenCache:
        return self._tokens

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def get_access_token(self) -> str:
        """Return a valid access token, renewing it at most once at a time.

        Raises
        ------
        AggregatorAuthenticationError
            If GoCardless rejects the configured credentials
        """
        token = self._tokens.access_token()
        if token is not None:
            return token

        async with self._tokens.lock:
            # Another caller may have renewed while we waited for the lock
            token = self._tokens.access_token()
            if token is not None:
                return token

            grant = await self._refresh_access_token()
            if grant is None:
                grant = await self._exchange_credentials()

            self._tokens.store(grant)
            return grant.access

    async def validate_credentials(self) -> bool:
        try:
            grant = await self._exchange_credentials()
        except AggregatorAuthenticationError as e:
            logger.warning("GoCardless credential validation failed: %s", e.detail)
            return False
        self._tokens.store(grant)
        return True

    async def _exchange_credentials(self) -> TokenGrant:
        logger.debug("Requesting new GoCardless token pair")
        data = await self._token_request(
            "/token/new/",
            {"secret_id": self._secret_id, "secret_key": self._secret_key},
        )
        return TokenGrant.model_validate(data)

    async def _refresh_access_token(self) -> TokenGrant | None:
        refresh = self._tokens.refresh_token()
        if refresh is None:
            return None

        logger.debug("Refreshing GoCardless access token")
        try:
            data = await self._token_request("/token/refresh/", {"refresh": refresh})
        except AggregatorAuthenticationError:
            logger.info("GoCardless refresh token rejected, re-authenticating")
            self._tokens.reset()
            return None
        return TokenGrant.model_validate(data)

    async def _token_request(self, path: str, body: dict[str, str]) -> Any:
        try:
            return await self._request("POST", path, json=body, authenticated=False)
        except AggregatorApiError as e:
            if e.status_code in _AUTH_FAILURE_STATUSES:
                raise AggregatorAuthenticationError(
                    detail=e.detail,
                    status_code=e.status_code,
                ) from e
            raise

    # -------------------------------------------------------------------------
    # Institutions, agreements and requisitions
    # -------------------------------------------------------------------------

    async def list_institutions(self, country_code: str) -> list[Institution]:
        data = await self._request(
            "GET",
            "/institutions/",
            params={"country": country_code.upper()},
        )
        return [Institution.model_validate(item) for item in data or []]

    async def create_end_user_agreement(
        self,
        institution_id: str,
        max_historical_days: int = 90,
        access_valid_for_days: int = 90,
        access_scope: tuple[str, ...] = DEFAULT_ACCESS_SCOPE,
    ) -> EndUserAgreement:
        data = await self._request(
            "POST",
            "/agreements/enduser/",
            json={
                "institution_id": institution_id,
                "max_historical_days": max_historical_days,
                "access_valid_for_days": access_valid_for_days,
                "access_scope": list(access_scope),
            },
        )
        return EndUserAgreement.model_validate(data)

    async def create_requisition(
        self,
        institution_id: str,
        redirect_url: str,
        language: str = "EN",
        reference: Optional[str] = None,
        agreement_id: Optional[str] = None,
    ) -> Requisition:
        body: dict[str, Any] = {
            "redirect": redirect_url,
            "institution_id": institution_id,
            "user_language": language,
        }
        if reference:
            body["reference"] = reference
        if agreement_id:
            body["agreement"] = agreement_id

        data = await self._request("POST", "/requisitions/", json=body)
        requisition = Requisition.model_validate(data)
        logger.info(
            "Created requisition %s for institution %s",
            requisition.id,
            institution_id,
        )
        return requisition

    async def get_requisition(self, requisition_id: str) -> Requisition:
        data = await self._request("GET", f"/requisitions/{requisition_id}/")
        return Requisition.model_validate(data)

    async def delete_requisition(self, requisition_id: str) -> None:
        await self._request("DELETE", f"/requisitions/{requisition_id}/")
        logger.info("Deleted requisition %s", requisition_id)

    # -------------------------------------------------------------------------
    # Account data
    # -------------------------------------------------------------------------

    async def get_account_details(self, account_id: str) -> AccountDetails:
        data = await self._request("GET", f"/accounts/{account_id}/details/")
        return AccountDetails.model_validate((data or {}).get("account", {}))

    async def get_account_balances(self, account_id: str) -> list[Balance]:
        data = await self._request("GET", f"/accounts/{account_id}/balances/")
        items = (data or {}).get("balances", [])
        return [Balance.model_validate(item) for item in items]

    async def get_account_transactions(
        self,
        account_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> TransactionPage:
        params = {}
        if date_from:
            params["date_from"] = date_from.isoformat()
        if date_to:
            params["date_to"] = date_to.isoformat()

        data = await self._request(
            "GET",
            f"/accounts/{account_id}/transactions/",
            params=params or None,
        )
        return TransactionPage.model_validate((data or {}).get("transactions", {}))

    # -------------------------------------------------------------------------
    # Rate limiting
    # -------------------------------------------------------------------------

    def check_rate_limit(self, account_id: str) -> bool:
        return self._quota.check_and_consume(account_id)

    def get_remaining_requests(self, account_id: str) -> int:
        return self._quota.remaining(account_id)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        client = await self._get_client()
        headers = {}
        if authenticated:
            headers["Authorization"] = f"Bearer {await self.get_access_token()}"

        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning("GoCardless %s %s failed: %s", method, path, e)
            raise AggregatorApiError(
                status_code=0,
                detail=str(e) or type(e).__name__,
                path=path,
            ) from e

        if response.is_error:
            if authenticated and response.status_code == 401:
                self._tokens.invalidate_access()
            detail = _error_detail(response)
            logger.warning(
                "GoCardless %s %s returned %d: %s",
                method,
                path,
                response.status_code,
                detail,
            )
            raise AggregatorApiError(
                status_code=response.status_code,
                detail=detail,
                path=path,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()


def _error_detail(response: httpx.Response) -> str:
    """Extract a readable message from a GoCardless error body.

    Errors carry ``detail``/``summary`` at the top level, or per field for
    validation errors (``{"institution_id": {"summary": ..., ...}}``).
    """
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        for key in ("detail", "summary"):
            if body.get(key):
                return str(body[key])
        for value in body.values():
            if isinstance(value, dict):
                nested = value.get("detail") or value.get("summary")
                if nested:
                    return str(nested)

    return response.reason_phrase or f"HTTP {response.status_code}"
