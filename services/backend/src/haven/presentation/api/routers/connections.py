"""Connections router: linking, completing and unlinking banks."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from haven.application.commands import (
    CompleteConnectionCommand,
    DisconnectBankCommand,
    InitiateConnectionCommand,
)
from haven.application.queries import (
    ConnectionStatusQuery,
    ListConnectionsQuery,
    ListInstitutionsQuery,
    ResolveCallbackQuery,
)
from haven.domain.banking.exceptions import (
    ConnectionNotFoundError,
    ConnectionNotLinkedError,
)
from haven.domain.banking.value_objects import RequisitionStatus
from haven.domain.shared.exceptions import DomainException
from haven.presentation.api.config import callback_url, get_api_settings
from haven.presentation.api.dependencies import RepoFactory, SystemRepoFactory
from haven.presentation.api.schemas.connections import (
    ConnectionListResponse,
    ConnectionResponse,
    ConnectionStatusResponse,
    ConnectRequest,
    ConnectResponse,
    DisconnectRequest,
    DisconnectResponse,
    InstitutionResponse,
)
from haven_config.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


@router.get(
    "/institutions",
    summary="List supported banks",
    responses={
        200: {"description": "Banks available in the country, sorted by name"},
        400: {"description": "Invalid country code"},
        503: {"description": "GoCardless is not configured"},
    },
)
async def list_institutions(
    factory: RepoFactory,
    country: str = Query("GB", description="Two-letter ISO country code"),
) -> list[InstitutionResponse]:
    query = ListInstitutionsQuery.from_factory(factory)
    institutions = await query.execute(country)
    return [InstitutionResponse.from_institution(i) for i in institutions]


@router.post(
    "",
    summary="Start linking a bank",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Authorization started; open auth_url"},
        400: {"description": "Invalid institution or country"},
        502: {"description": "GoCardless rejected the request"},
    },
)
async def create_connection(
    factory: RepoFactory,
    request: ConnectRequest,
    settings: Settings = Depends(get_api_settings),
) -> ConnectResponse:
    """
    Create a requisition at GoCardless and return the bank's authorization URL.

    After the user authorizes, the bank redirects to the callback endpoint,
    which completes the connection.
    """
    command = InitiateConnectionCommand.from_factory(factory)
    try:
        result = await command.execute(
            institution_id=request.institution_id,
            institution_name=request.institution_name,
            country_code=request.country_code,
            redirect_url=callback_url(settings),
        )
        await factory.session.commit()
    except Exception:
        await factory.session.rollback()
        raise

    return ConnectResponse(
        success=True,
        requisition_id=result.requisition_id,
        auth_url=result.auth_url,
        message=f"Open the link to authorize access to {result.institution_name}",
    )


@router.get(
    "/callback",
    summary="Authorization callback",
    response_class=HTMLResponse,
    include_in_schema=False,
)
async def connection_callback(
    request: Request,
    factory: SystemRepoFactory,
    ref: Optional[str] = None,
    error: Optional[str] = None,
) -> HTMLResponse:
    """
    Landing page the bank redirects to after authorization.

    Runs without a signed-in user: the connection is resolved from ``ref``.
    Always answers with a small page that closes itself.
    """
    if error:
        logger.warning("Authorization callback reported error: %s", error)
        return _render(request, "error", message=f"Authorization failed: {error}")
    if not ref:
        logger.warning("Authorization callback without reference")
        return _render(request, "error", message="Missing connection reference")

    try:
        connection = await ResolveCallbackQuery.from_factory(factory).execute(ref)
    except ConnectionNotFoundError:
        logger.warning("Authorization callback for unknown reference %s", ref)
        return _render(request, "error", message="Unknown connection reference")

    command = CompleteConnectionCommand.from_factory(factory)
    try:
        completed = await command.execute(connection.requisition_id)
        await factory.session.commit()
    except ConnectionNotLinkedError as e:
        await factory.session.commit()
        if RequisitionStatus.terminal_failure_target(e.status) is not None:
            return _render(
                request,
                "error",
                message="The bank did not grant access",
                bank_name=connection.institution_name,
            )
        return _render(request, "processing", bank_name=connection.institution_name)
    except DomainException as e:
        await factory.session.rollback()
        logger.warning(
            "Completing requisition %s failed: %s",
            connection.requisition_id,
            e,
        )
        return _render(request, "processing", bank_name=connection.institution_name)

    return _render(
        request,
        "success",
        bank_name=connection.institution_name,
        accounts=[a.name for a in completed.accounts],
    )


def _render(
    request: Request,
    outcome: str,
    message: Optional[str] = None,
    bank_name: Optional[str] = None,
    accounts: Optional[list[str]] = None,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "callback.html",
        {
            "outcome": outcome,
            "message": message,
            "bank_name": bank_name,
            "accounts": accounts or [],
        },
        status_code=(
            status.HTTP_400_BAD_REQUEST if outcome == "error" else status.HTTP_200_OK
        ),
    )


@router.post(
    "/disconnect",
    summary="Unlink a bank",
    responses={
        200: {"description": "Connection suspended and accounts deactivated"},
        404: {"description": "Connection not found"},
    },
)
async def disconnect(
    factory: RepoFactory,
    request: DisconnectRequest,
) -> DisconnectResponse:
    command = DisconnectBankCommand.from_factory(factory)
    try:
        result = await command.execute(request.requisition_id)
        await factory.session.commit()
    except Exception:
        await factory.session.rollback()
        raise

    return DisconnectResponse(
        success=True,
        message=f"Disconnected {result.institution_name}",
        disconnected_institution=result.institution_name,
        accounts_deactivated=result.accounts_deactivated,
    )


@router.get("", summary="List connections")
async def list_connections(factory: RepoFactory) -> ConnectionListResponse:
    items = await ListConnectionsQuery.from_factory(factory).execute()
    return ConnectionListResponse(
        connections=[
            ConnectionResponse.from_info(item.connection, item.accounts)
            for item in items
        ],
        total_count=len(items),
    )


@router.get("/status", summary="Recent connection activity")
async def connection_status(factory: RepoFactory) -> ConnectionStatusResponse:
    overview = await ConnectionStatusQuery.from_factory(factory).execute()
    return ConnectionStatusResponse.from_overview(overview)
