"""Banking domain exceptions.

This module defines exceptions specific to the banking bounded context:
aggregator configuration and transport failures, connection lifecycle
errors, and sync outcomes.

Aggregator failures typically map to 5xx HTTP responses (bad gateway,
service unavailable); connection lookups map to 404/409.
"""

from uuid import UUID

from haven.domain.shared.exceptions import (
    BusinessRuleViolation,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
)

# =============================================================================
# Base Banking Exception
# =============================================================================


class BankingDomainError(DomainException):
    """Base exception for banking domain errors.

    All banking-related exceptions should inherit from this class to
    enable consistent handling of bank integration issues.
    """


# =============================================================================
# Aggregator Exceptions
# =============================================================================


class AggregatorNotConfiguredError(BankingDomainError):
    """Raised when the aggregator client id/secret are missing."""

    def __init__(
        self,
        message: str = (
            "GoCardless credentials are not configured. "
            "Set GOCARDLESS_SECRET_ID and GOCARDLESS_SECRET_KEY."
        ),
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.AGGREGATOR_NOT_CONFIGURED,
        )


class AggregatorApiError(BankingDomainError):
    """Raised when the aggregator answers with a non-2xx response.

    A ``status_code`` of 0 means the request never got a response
    (network failure, timeout).
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        path: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        code = (
            ErrorCode.AGGREGATOR_RATE_LIMITED
            if status_code == 429
            else ErrorCode.AGGREGATOR_API_ERROR
        )
        super().__init__(
            message=f"GoCardless API error ({status_code}): {detail}",
            code=code,
            details={"status_code": status_code, "path": path},
        )


class AggregatorAuthenticationError(AggregatorApiError):
    """Raised when the aggregator rejects the configured credentials."""

    def __init__(
        self,
        detail: str = "Authentication failed",
        status_code: int = 401,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, path="/token/")
        self.message = f"GoCardless authentication failed: {detail}"
        self.code = ErrorCode.AGGREGATOR_AUTHENTICATION_FAILED


# =============================================================================
# Connection Exceptions
# =============================================================================


class ConnectionNotFoundError(EntityNotFoundError, BankingDomainError):
    """Raised when a connection cannot be resolved for a requisition/ref."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(
            message=f"No bank connection found for reference {reference}",
            code=ErrorCode.CONNECTION_NOT_FOUND,
            details={"reference": reference},
        )


class ConnectionNotLinkedError(BankingDomainError):
    """Raised when completion is attempted before the aggregator reports LN."""

    def __init__(self, requisition_id: str, status: str) -> None:
        self.requisition_id = requisition_id
        self.status = status
        super().__init__(
            message=f"Bank connection is not linked yet (status: {status})",
            code=ErrorCode.CONNECTION_NOT_LINKED,
            details={"requisition_id": requisition_id, "status": status},
        )


class InvalidConnectionStateError(BusinessRuleViolation, BankingDomainError):
    """Raised when a connection is asked to make an illegal transition."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            message=f"Cannot move connection from {current} to {target}",
            code=ErrorCode.INVALID_CONNECTION_STATE,
            details={"current": current, "target": target},
        )


class BankAccountNotFoundError(EntityNotFoundError, BankingDomainError):
    """Raised when a bank account is not found for the current user."""

    def __init__(self, account_id: UUID) -> None:
        super().__init__(
            message=f"Bank account not found: {account_id}",
            code=ErrorCode.ACCOUNT_NOT_FOUND,
            details={"account_id": str(account_id)},
        )


# =============================================================================
# Sync Exceptions
# =============================================================================


class RateLimitExceededError(BankingDomainError):
    """Raised (or recorded) when an account's daily request quota is spent."""

    def __init__(self, account_name: str) -> None:
        self.account_name = account_name
        super().__init__(
            message=f"Rate limit exceeded for account {account_name}",
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            details={"account": account_name},
        )


class PartialSyncError(BankingDomainError):
    """Raised when a sync batch finished but some accounts failed."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(
            message=f"Sync completed with {len(self.errors)} error(s)",
            code=ErrorCode.PARTIAL_SYNC_FAILURE,
            details={"errors": self.errors},
        )
