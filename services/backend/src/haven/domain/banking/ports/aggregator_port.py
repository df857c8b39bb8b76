"""Open-banking aggregator port interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from haven.domain.banking.value_objects import (
        AccountDetails,
        Balance,
        EndUserAgreement,
        Institution,
        Requisition,
        TransactionPage,
    )

DEFAULT_ACCESS_SCOPE = ("balances", "details", "transactions")


class AggregatorPort(ABC):
    """
    Interface to a third-party open-banking data provider.

    The domain needs three things from it: a way to send the user to their
    bank to authorize access (requisitions), read access to the accounts
    that authorization unlocked, and a per-account request quota.
    """

    @abstractmethod
    async def list_institutions(self, country_code: str) -> list[Institution]:
        """
        List the banks available in a country.

        Parameters
        ----------
        country_code
            ISO 3166 two-letter country code

        Returns
        -------
        Institutions as returned by the aggregator
        """

    @abstractmethod
    async def create_end_user_agreement(
        self,
        institution_id: str,
        max_historical_days: int = 90,
        access_valid_for_days: int = 90,
        access_scope: tuple[str, ...] = DEFAULT_ACCESS_SCOPE,
    ) -> EndUserAgreement:
        """Create the access terms the user will accept at their bank."""

    @abstractmethod
    async def create_requisition(
        self,
        institution_id: str,
        redirect_url: str,
        language: str = "EN",
        reference: Optional[str] = None,
        agreement_id: Optional[str] = None,
    ) -> Requisition:
        """
        Start an authorization session.

        Parameters
        ----------
        institution_id
            Aggregator id of the chosen bank
        redirect_url
            Where the aggregator sends the browser after authorization
        language
            UI language of the aggregator's pages
        reference
            Caller-minted reference echoed back in the redirect
        agreement_id
            End-user agreement to attach (aggregator defaults otherwise)

        Returns
        -------
        The requisition, including the end-user authorization ``link``
        """

    @abstractmethod
    async def get_requisition(self, requisition_id: str) -> Requisition:
        """Return the requisition's status and, once linked, its account ids."""

    @abstractmethod
    async def delete_requisition(self, requisition_id: str) -> None:
        """Revoke an authorization session."""

    @abstractmethod
    async def get_account_details(self, account_id: str) -> AccountDetails:
        """Fetch descriptive data (name, IBAN, currency, type) of an account."""

    @abstractmethod
    async def get_account_balances(self, account_id: str) -> list[Balance]:
        """Fetch the current balances of an account."""

    @abstractmethod
    async def get_account_transactions(
        self,
        account_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> TransactionPage:
        """
        Fetch booked and pending transactions of an account.

        Parameters
        ----------
        account_id
            External account id
        date_from
            First booking date to include (aggregator default if omitted)
        date_to
            Last booking date to include (aggregator default if omitted)
        """

    @abstractmethod
    def check_rate_limit(self, account_id: str) -> bool:
        """
        Consume one request from the account's quota.

        Returns
        -------
        True if the call is permitted, False if the quota is exhausted
        """

    @abstractmethod
    def get_remaining_requests(self, account_id: str) -> int:
        """Return how many requests remain for the account (read-only)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Return whether the configured credentials are accepted."""
