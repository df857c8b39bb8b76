"""FastAPI application factory.

Creates and configures the FastAPI application with all routers,
middleware, and exception handlers.

API Versioning:
    All API endpoints are versioned under /api/v1/ prefix.
    The health check endpoint remains unversioned at /health.

Run with ``uvicorn haven.presentation.api.app:create_app --factory``.
"""

import logging
import sys
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from haven.infrastructure.persistence.sqlalchemy.init_db import create_tables
from haven.presentation.api.config import API_V1_PREFIX, API_VERSION
from haven.presentation.api.dependencies import get_engine
from haven.presentation.api.exception_handlers import setup_exception_handlers
from haven.presentation.api.routers import connections_router, sync_router
from haven_config.settings import Settings, get_settings


@lru_cache(maxsize=1)
def _configure_logging(log_level_str: str = "INFO") -> None:
    """Configure application logging.

    Console output with timestamps and module names; the haven loggers use
    the configured level and noisy third-party loggers are kept at WARNING.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt=date_format,
        stream=sys.stdout,
        force=True,  # Override any existing config
    )

    logging.getLogger("haven").setLevel(log_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {
        "name": "Connections",
        "description": """Linking banks through GoCardless Bank Account Data.

**Flow:**
1. `GET /connections/institutions` to pick a bank
2. `POST /connections` returns an `auth_url`; open it in a popup
3. The bank redirects to `/connections/callback`, which links the accounts
4. Poll `GET /connections/status` to notice the new accounts
""",
    },
    {
        "name": "Sync",
        "description": """Refreshing balances and recent transactions.

GoCardless allows few requests per account and day; the quota is tracked
per account and `GET /sync/status` reports what is left.
""",
    },
    {
        "name": "Health",
        "description": "Service health monitoring endpoints.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info("Starting %s API v%s...", settings.app_name, API_VERSION)
    engine = get_engine()
    try:
        await create_tables(engine)
    except ConnectionRefusedError:
        logger.critical("Could not connect to the database.")
        raise SystemExit(1) from None

    if not settings.gocardless_configured:
        logger.warning(
            "GoCardless credentials missing (GOCARDLESS_SECRET_ID / "
            "GOCARDLESS_SECRET_KEY); bank endpoints will answer 503",
        )
    yield

    logger.info("Shutting down %s API...", settings.app_name)
    await engine.dispose()
    logger.info("Database connections closed")


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all endpoints."""
    v1_router = APIRouter()
    v1_router.include_router(
        connections_router,
        prefix="/connections",
        tags=["Connections"],
    )
    v1_router.include_router(sync_router, prefix="/sync", tags=["Sync"])
    return v1_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings
        Optional settings override for testing.

    Returns
    -------
    Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    _configure_logging(settings.log_level)

    app = FastAPI(
        title=f"{settings.app_name} API",
        description=(
            "Bank connections and balance/transaction sync through "
            "**GoCardless Bank Account Data**."
        ),
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(create_v1_router(), prefix=API_V1_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint (unversioned)."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "api_versions": ["v1"],
            "gocardless_configured": settings.gocardless_configured,
        }

    return app
