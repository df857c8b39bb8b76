"""Centralized exception handlers for the FastAPI application.

Domain exceptions are mapped to HTTP responses with a consistent body:

    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE"
    }
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from haven.domain.banking.exceptions import (
    AggregatorApiError,
    AggregatorAuthenticationError,
    BankingDomainError,
)
from haven.domain.shared.exceptions import (
    BusinessRuleViolation,
    ConflictError,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Code to HTTP Status Mapping
# =============================================================================

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    # 400 Bad Request - validation errors
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_COUNTRY_CODE: status.HTTP_400_BAD_REQUEST,
    # 404 Not Found
    ErrorCode.ENTITY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONNECTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    # 409 Conflict
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.CONNECTION_NOT_LINKED: status.HTTP_409_CONFLICT,
    # 422 Unprocessable Entity - business rule violations
    ErrorCode.BUSINESS_RULE_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_CONNECTION_STATE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    # 429 Too Many Requests
    ErrorCode.RATE_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.AGGREGATOR_RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    # 502 Bad Gateway - the aggregator failed us
    ErrorCode.AGGREGATOR_AUTHENTICATION_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.AGGREGATOR_API_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PARTIAL_SYNC_FAILURE: status.HTTP_502_BAD_GATEWAY,
    # 503 Service Unavailable
    ErrorCode.AGGREGATOR_NOT_CONFIGURED: status.HTTP_503_SERVICE_UNAVAILABLE,
    # 500 Internal Server Error
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _get_status_for_exception(exc: DomainException) -> int:
    """Determine HTTP status code for a domain exception.

    Uses the error code mapping, with fallback based on exception type.
    """
    if exc.code in ERROR_CODE_TO_STATUS:
        return ERROR_CODE_TO_STATUS[exc.code]

    if isinstance(exc, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, BusinessRuleViolation):
        return status.HTTP_422_UNPROCESSABLE_ENTITY

    return status.HTTP_400_BAD_REQUEST


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "code": code,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        status_code = _get_status_for_exception(exc)
        logger.warning(
            "Domain exception on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )
        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(BankingDomainError)
    async def banking_exception_handler(
        request: Request,
        exc: BankingDomainError,
    ) -> JSONResponse:
        """Handle banking domain exceptions.

        Aggregator credential failures are reported without the upstream
        detail; other aggregator errors keep their message.
        """
        if isinstance(exc, AggregatorAuthenticationError):
            logger.warning(
                "GoCardless authentication failed on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
            )
            return _create_error_response(
                status_code=status.HTTP_502_BAD_GATEWAY,
                message="Bank data provider rejected our credentials.",
                code=ErrorCode.AGGREGATOR_AUTHENTICATION_FAILED.value,
            )

        if isinstance(exc, AggregatorApiError):
            logger.warning(
                "GoCardless error on %s %s: status=%s path=%s detail=%s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.details.get("path"),
                exc.detail,
            )
            return _create_error_response(
                status_code=_get_status_for_exception(exc),
                message=exc.message,
                code=exc.code.value,
            )

        status_code = _get_status_for_exception(exc)
        logger.warning(
            "Banking error on %s %s: %s (code=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
        )
        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for exceptions the domain handlers do not cover."""
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.INTERNAL_ERROR.value,
        )
