"""Repository interface for bank accounts."""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from haven.domain.banking.entities import BankAccount


class BankAccountRepository(ABC):
    """Repository for internal bank account records."""

    @abstractmethod
    async def save(self, account: BankAccount) -> None:
        """
        Save or update a bank account.

        Parameters
        ----------
        account
            The bank account to save
        """

    @abstractmethod
    async def find_by_id(
        self,
        user_id: UUID,
        account_id: UUID,
    ) -> Optional[BankAccount]:
        """Find one of the user's accounts by internal id."""

    @abstractmethod
    async def find_by_external_id(
        self,
        external_account_id: str,
    ) -> Optional[BankAccount]:
        """Find an account by the aggregator's external account id."""

    @abstractmethod
    async def find_by_user(self, user_id: UUID) -> list[BankAccount]:
        """Return all accounts of a user, active or not."""

    @abstractmethod
    async def find_active_aggregator_accounts(
        self,
        user_id: UUID,
        account_id: Optional[UUID] = None,
    ) -> list[BankAccount]:
        """
        Return the user's active aggregator-linked accounts.

        Parameters
        ----------
        user_id
            Owner of the accounts
        account_id
            Restrict the result to this account

        Returns
        -------
        Accounts in creation order
        """

    @abstractmethod
    async def find_by_connection(self, connection_id: UUID) -> list[BankAccount]:
        """Return the accounts surfaced by a connection."""

    @abstractmethod
    async def deactivate_for_connection(
        self,
        user_id: UUID,
        connection_id: UUID,
    ) -> int:
        """
        Deactivate the aggregator accounts that came from a connection.

        Legacy aggregator accounts of the user with no connection recorded
        are deactivated as well.

        Returns
        -------
        Number of accounts deactivated
        """
