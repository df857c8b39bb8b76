"""API configuration adapter.

Bridges the centralized haven_config settings with the API layer.
"""

from fastapi import Request

from haven_config.settings import Settings, get_settings

API_VERSION = "1.0.0"
API_V1_PREFIX = "/api/v1"
CALLBACK_PATH = f"{API_V1_PREFIX}/connections/callback"


def get_api_settings(request: Request) -> Settings:
    """Settings the running app was created with.

    Falls back to the centralized settings for apps created without an
    explicit override.
    """
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def callback_url(settings: Settings) -> str:
    return f"{settings.public_base_url.rstrip('/')}{CALLBACK_PATH}"
