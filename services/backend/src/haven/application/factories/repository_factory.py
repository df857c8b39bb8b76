"""Repository factory protocol for application layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, AsyncContextManager, Protocol

from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.repositories import (
    AccountBalanceRepository,
    BankAccountRepository,
    ConnectionRepository,
    FinancialTransactionRepository,
)

if TYPE_CHECKING:
    from haven.application.context import UserContext
    from haven_config import Settings


class RepositoryFactory(Protocol):
    """Protocol for creating repositories and adapters for one unit of work."""

    @property
    def user_context(self) -> UserContext:
        """Get the current user (raises if the factory has none)."""
        ...

    @property
    def session(self) -> Any:
        """Get the database session for transaction management.

        The type is intentionally `Any` to avoid coupling the
        application layer to specific database implementations.
        Use this for commit/rollback at the presentation layer.
        """
        ...

    @property
    def settings(self) -> Settings:
        """Get the application settings."""
        ...

    def savepoint(self) -> AsyncContextManager[Any]:
        """Open a savepoint; an error inside rolls back only its statements."""
        ...

    def connection_repository(self) -> ConnectionRepository:
        """Get connection repository."""
        ...

    def bank_account_repository(self) -> BankAccountRepository:
        """Get bank account repository."""
        ...

    def account_balance_repository(self) -> AccountBalanceRepository:
        """Get account balance repository."""
        ...

    def financial_transaction_repository(self) -> FinancialTransactionRepository:
        """Get financial transaction repository."""
        ...

    def aggregator(self) -> AggregatorPort:
        """Get the open-banking aggregator client."""
        ...
