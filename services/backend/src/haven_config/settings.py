"""Application settings loaded from environment variables.

Configuration file discovery (in priority order):
1. OS environment variables (always highest priority)
2. HAVEN_ENV_FILE environment variable (absolute path to .env file)
3. config/.env.dev - local development
4. config/.env - production/Docker

Uses pydantic-settings for automatic type coercion and validation.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_project_root() -> Path:
    """Find the project root directory."""
    current = Path(__file__).resolve().parent

    for parent in [current, *current.parents]:
        if (parent / "config").is_dir():
            return parent
        if (parent / ".git").is_dir():
            return parent
        if parent == Path("/app"):
            return parent

    return Path(__file__).resolve().parents[4]


def get_config_dir() -> Path:
    """Get the config directory path."""
    return _find_project_root() / "config"


def _resolve_env_file_path() -> Path | None:
    """Resolve the .env file path.

    Priority:
    1. HAVEN_ENV_FILE env var (full path)
    2. config/.env.dev (local development)
    3. config/.env (production)
    """
    env_file_path = os.environ.get("HAVEN_ENV_FILE")
    if env_file_path:
        path = Path(env_file_path)
        if not path.is_absolute():
            path = _find_project_root() / path
        if path.exists():
            return path

    config_dir = get_config_dir()

    dev_env = config_dir / ".env.dev"
    if dev_env.exists():
        return dev_env

    prod_env = config_dir / ".env"
    if prod_env.exists():
        return prod_env

    return None


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Values are loaded from:
    1. OS environment variables (highest priority)
    2. .env file (config/.env.dev or config/.env)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file_path(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Security (MUST be set - app fails without these)
    jwt_secret_key: SecretStr  # Secret for verifying JWT tokens
    postgres_password: SecretStr  # Database password

    # Application
    app_name: str = "Haven"
    debug: bool = False

    # Database (POSTGRES_ prefix)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_db: str = "haven"
    database_url_override: str | None = None  # DATABASE_URL_OVERRIDE, e.g. sqlite

    # API (API_ prefix)
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_cors_origins: str = ""  # Empty = no CORS allowed (secure default)

    @field_validator("api_cors_origins", mode="before")
    @classmethod
    def _validate_cors_origins(cls, v: Any) -> str:
        """Ensure cors_origins is stored as comma-separated string."""
        if isinstance(v, list):
            return ",".join(v)
        return str(v) if v else ""

    # JWT
    jwt_access_token_expire_hours: int = 1

    # Public URL the aggregator redirects the browser back to
    public_base_url: str = "http://localhost:8000"

    # GoCardless Bank Account Data (GOCARDLESS_ prefix)
    # Optional at load time, required on first aggregator call
    gocardless_secret_id: SecretStr | None = None
    gocardless_secret_key: SecretStr | None = None
    gocardless_base_url: str = "https://bankaccountdata.gocardless.com/api/v2"
    gocardless_timeout: float = 30.0
    gocardless_daily_request_limit: int = 4
    gocardless_user_language: str = "EN"
    gocardless_create_agreement: bool = True
    gocardless_max_historical_days: int = 90
    gocardless_access_valid_for_days: int = 90

    # Sync
    sync_transaction_window_days: int = 30
    daily_sync_user_delay_seconds: float = 1.0
    cron_secret: SecretStr | None = None

    # Completion watcher (CLI connect flow)
    connection_watch_timeout_seconds: float = 300.0
    connection_watch_poll_seconds: float = 5.0
    connection_watch_max_attempts: int = 60

    # Logging (LOG_ prefix)
    log_level: str = "INFO"

    # Computed properties
    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Construct the database URL from components."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password.get_secret_value()}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [o.strip() for o in self.api_cors_origins.split(",") if o.strip()]

    @property
    def gocardless_configured(self) -> bool:
        """Whether both aggregator credentials are present and non-empty."""
        return bool(
            self.gocardless_secret_id
            and self.gocardless_secret_id.get_secret_value()
            and self.gocardless_secret_key
            and self.gocardless_secret_key.get_secret_value(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    Required fields (jwt_secret_key, postgres_password) must be provided
    via environment variables or .env file.
    """
    return Settings()  # type: ignore[call-arg]  # pydantic-settings loads from env


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
