"""FastAPI dependency injection for the Haven API.

Provides dependencies for:
- Database sessions
- Authentication (user context from JWT)
- Repository factories, with and without a signed-in user
- The GoCardless client
- The cron secret guarding the scheduled sync
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Annotated, AsyncGenerator, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from haven.application.context import UserContext
from haven.domain.banking.ports import AggregatorPort
from haven.infrastructure.persistence.sqlalchemy.engine import create_engine
from haven.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
    create_aggregator_from_settings,
)
from haven.presentation.api.config import get_api_settings
from haven_auth import InvalidTokenError, JWTService
from haven_config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Security scheme for JWT Bearer tokens
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_database_url() -> str:
    """
    Get database URL from application settings.

    Returns
    -------
    Database URL string
    """
    url = get_settings().database_url

    # Ensure data directory exists for SQLite
    if url.startswith("sqlite") and ":memory:" not in url:
        db_path = url.split("///")[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return url


# -----------------------------------------------------------------------------
# Database Engine & Session (Singleton)
# -----------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """
    Get the shared async database engine (singleton).

    Returns
    -------
    AsyncEngine instance
    """
    return create_engine(
        get_database_url(),
        echo=False,
        pool_pre_ping=True,  # Verify connections before use
    )


@lru_cache(maxsize=1)
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Get the shared async session maker (singleton).

    Returns
    -------
    async_sessionmaker configured with the shared engine
    """
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields
    ------
    AsyncSession for database operations
    """
    async with get_session_maker()() as session:
        yield session


# Type alias for injected session
DBSession = Annotated[AsyncSession, Depends(get_db_session)]


# -----------------------------------------------------------------------------
# Aggregator
# -----------------------------------------------------------------------------


def get_aggregator_provider() -> Callable[[], AggregatorPort]:
    """
    Provider of the process-wide GoCardless client.

    Returned uncalled so that endpoints which never talk to the aggregator
    keep working while GoCardless is not configured. Tests override this
    dependency with a fake.
    """
    return create_aggregator_from_settings


AggregatorProvider = Annotated[
    Callable[[], AggregatorPort],
    Depends(get_aggregator_provider),
]


# -----------------------------------------------------------------------------
# Authentication
# -----------------------------------------------------------------------------


def get_jwt_service(
    settings: Settings = Depends(get_api_settings),
) -> JWTService:
    """Get JWT service configured with API settings."""
    return JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        access_token_expire_hours=settings.jwt_access_token_expire_hours,
    )


async def get_user_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    jwt_service: JWTService = Depends(get_jwt_service),
) -> UserContext:
    """
    FastAPI dependency resolving the signed-in user from the JWT.

    Raises
    ------
    HTTPException
        401 if the token is missing, invalid or not an access token
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt_service.verify_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Invalid token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    if not payload.is_access_token():
        logger.warning("Non-access token used for user: %s", payload.user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return UserContext.from_values(payload.user_id, payload.email)


# Type alias for injected user context
CurrentUserContext = Annotated[UserContext, Depends(get_user_context)]


def verify_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_api_settings),
) -> None:
    """
    Guard for the scheduled sync endpoint.

    Raises
    ------
    HTTPException
        503 if no cron secret is configured, 401 if the bearer token does
        not match it
    """
    if settings.cron_secret is None or not settings.cron_secret.get_secret_value():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduled sync is not configured",
        )

    expected = settings.cron_secret.get_secret_value()
    supplied = credentials.credentials if credentials else ""
    if not secrets.compare_digest(supplied.encode(), expected.encode()):
        logger.warning("Rejected scheduled sync call with a wrong cron secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
            headers={"WWW-Authenticate": "Bearer"},
        )


# -----------------------------------------------------------------------------
# Repository Factories
# -----------------------------------------------------------------------------


async def get_repository_factory(
    session: DBSession,
    user_context: CurrentUserContext,
    aggregator_provider: AggregatorProvider,
    settings: Settings = Depends(get_api_settings),
) -> SQLAlchemyRepositoryFactory:
    """Repository factory scoped to the signed-in user."""
    return SQLAlchemyRepositoryFactory(
        session=session,
        user_context=user_context,
        aggregator_provider=aggregator_provider,
        settings=settings,
    )


# Type alias for injected repository factory
RepoFactory = Annotated[SQLAlchemyRepositoryFactory, Depends(get_repository_factory)]


async def get_system_repository_factory(
    session: DBSession,
    aggregator_provider: AggregatorProvider,
    settings: Settings = Depends(get_api_settings),
) -> SQLAlchemyRepositoryFactory:
    """
    Repository factory without a user.

    Used by the authorization callback and the scheduled sync, which carry
    no JWT and address users explicitly.
    """
    return SQLAlchemyRepositoryFactory(
        session=session,
        aggregator_provider=aggregator_provider,
        settings=settings,
    )


SystemRepoFactory = Annotated[
    SQLAlchemyRepositoryFactory,
    Depends(get_system_repository_factory),
]
