"""SQLAlchemy repository factory."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from haven.infrastructure.integration.gocardless import GoCardlessClient
from haven.infrastructure.persistence.sqlalchemy.repositories.banking import (
    AccountBalanceRepositorySQLAlchemy,
    BankAccountRepositorySQLAlchemy,
    ConnectionRepositorySQLAlchemy,
    FinancialTransactionRepositorySQLAlchemy,
)
from haven_config.settings import Settings, get_settings

if TYPE_CHECKING:
    from haven.application.context import UserContext
    from haven.domain.banking.ports import AggregatorPort

logger = logging.getLogger(__name__)


class SQLAlchemyRepositoryFactory:
    """SQLAlchemy implementation of the RepositoryFactory Protocol.

    ``user_context`` is optional because the authorization callback runs
    without a signed-in user. ``aggregator_provider`` is only called when a
    command needs the aggregator and defaults to the process-wide GoCardless
    client built from settings.
    """

    def __init__(
        self,
        session: AsyncSession,
        user_context: Optional[UserContext] = None,
        aggregator_provider: Optional[Callable[[], AggregatorPort]] = None,
        settings: Optional[Settings] = None,
    ):
        self._session = session
        self._user_context = user_context
        self._aggregator_provider = (
            aggregator_provider or create_aggregator_from_settings
        )
        self._aggregator: Optional[AggregatorPort] = None
        self._settings = settings

        # Cached instances (created on demand)
        self._connection_repo: ConnectionRepositorySQLAlchemy | None = None
        self._bank_account_repo: BankAccountRepositorySQLAlchemy | None = None

    @property
    def user_context(self) -> UserContext:
        if self._user_context is None:
            msg = "This repository factory was created without a user context"
            raise RuntimeError(msg)
        return self._user_context

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def savepoint(self) -> AsyncSessionTransaction:
        return self._session.begin_nested()

    def connection_repository(self) -> ConnectionRepositorySQLAlchemy:
        if self._connection_repo is None:
            self._connection_repo = ConnectionRepositorySQLAlchemy(self._session)
        return self._connection_repo

    def bank_account_repository(self) -> BankAccountRepositorySQLAlchemy:
        if self._bank_account_repo is None:
            self._bank_account_repo = BankAccountRepositorySQLAlchemy(self._session)
        return self._bank_account_repo

    def account_balance_repository(self) -> AccountBalanceRepositorySQLAlchemy:
        return AccountBalanceRepositorySQLAlchemy(self._session)

    def financial_transaction_repository(
        self,
    ) -> FinancialTransactionRepositorySQLAlchemy:
        return FinancialTransactionRepositorySQLAlchemy(self._session)

    def aggregator(self) -> AggregatorPort:
        if self._aggregator is None:
            self._aggregator = self._aggregator_provider()
        return self._aggregator


@lru_cache(maxsize=1)
def create_aggregator_from_settings() -> GoCardlessClient:
    """Create the process-wide GoCardless client (cached).

    The token cache and request quota live on this instance, so they
    survive across requests and reset on restart.

    Raises
    ------
    AggregatorNotConfiguredError
        If the GoCardless credentials are missing
    """
    settings = get_settings()
    logger.info(
        "Creating GoCardless client (url: %s, daily limit: %d)",
        settings.gocardless_base_url,
        settings.gocardless_daily_request_limit,
    )
    return GoCardlessClient.from_settings(settings)
