"""Start linking a bank through the aggregator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from haven.application.dtos.banking import ConnectionInitiated
from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.repositories import ConnectionRepository
from haven.domain.banking.value_objects import CallbackReference
from haven.domain.shared.exceptions import ErrorCode, ValidationError

if TYPE_CHECKING:
    from haven.application.context import UserContext
    from haven.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)


class InitiateConnectionCommand:
    """Create a requisition and persist it as a ``created`` connection.

    The returned authorization URL is opened by the user out of band; the
    aggregator redirects back to ``redirect_url`` with the requisition id or
    our reference as ``ref``.
    """

    def __init__(  # NOQA: PLR0913
        self,
        aggregator: AggregatorPort,
        connection_repo: ConnectionRepository,
        user_context: UserContext,
        user_language: str = "EN",
        create_agreement: bool = True,
        max_historical_days: int = 90,
        access_valid_for_days: int = 90,
    ):
        self._aggregator = aggregator
        self._connection_repo = connection_repo
        self._user_context = user_context
        self._user_language = user_language
        self._create_agreement = create_agreement
        self._max_historical_days = max_historical_days
        self._access_valid_for_days = access_valid_for_days

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> InitiateConnectionCommand:
        settings = factory.settings
        return cls(
            aggregator=factory.aggregator(),
            connection_repo=factory.connection_repository(),
            user_context=factory.user_context,
            user_language=settings.gocardless_user_language,
            create_agreement=settings.gocardless_create_agreement,
            max_historical_days=settings.gocardless_max_historical_days,
            access_valid_for_days=settings.gocardless_access_valid_for_days,
        )

    async def execute(
        self,
        institution_id: str,
        institution_name: str,
        country_code: str,
        redirect_url: str,
    ) -> ConnectionInitiated:
        """
        Start the authorization flow for one institution.

        Parameters
        ----------
        institution_id
            Aggregator id of the bank
        institution_name
            Display name of the bank
        country_code
            Two-letter country code
        redirect_url
            Callback URL the aggregator redirects to

        Returns
        -------
        ConnectionInitiated with the end-user authorization URL

        Raises
        ------
        ValidationError
            If the institution or country code is missing or malformed
        AggregatorApiError
            If the aggregator rejects the agreement or requisition
        """
        institution_id = (institution_id or "").strip()
        if not institution_id:
            raise ValidationError("Institution id is required")
        country_code = (country_code or "").strip().upper()
        if len(country_code) != 2 or not country_code.isalpha():
            raise ValidationError(
                "Country code must be a 2-letter ISO code",
                code=ErrorCode.INVALID_COUNTRY_CODE,
            )
        institution_name = (institution_name or "").strip() or institution_id

        user_id = self._user_context.user_id
        reference = str(CallbackReference.create(user_id))

        agreement_id: Optional[str] = None
        if self._create_agreement:
            agreement = await self._aggregator.create_end_user_agreement(
                institution_id=institution_id,
                max_historical_days=self._max_historical_days,
                access_valid_for_days=self._access_valid_for_days,
            )
            agreement_id = agreement.id

        requisition = await self._aggregator.create_requisition(
            institution_id=institution_id,
            redirect_url=redirect_url,
            language=self._user_language,
            reference=reference,
            agreement_id=agreement_id,
        )
        if not requisition.link:
            msg = f"Requisition {requisition.id} has no authorization link"
            raise ValidationError(msg)

        connection = await self._connection_repo.create(
            user_id=user_id,
            requisition_id=requisition.id,
            institution_id=institution_id,
            institution_name=institution_name,
            country_code=country_code,
            reference=reference,
            end_user_agreement_id=agreement_id,
            access_valid_for_days=self._access_valid_for_days,
            max_historical_days=self._max_historical_days,
        )

        logger.info(
            "Initiated connection to %s for user %s (requisition %s)",
            institution_name,
            user_id,
            requisition.id,
        )

        return ConnectionInitiated(
            connection_id=connection.id,
            requisition_id=requisition.id,
            auth_url=requisition.link,
            reference=reference,
            institution_name=institution_name,
        )
