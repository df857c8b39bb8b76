"""Tests for the application settings."""

import pytest
from pydantic import ValidationError

from haven_config import Settings, clear_settings_cache, get_settings


def _settings(**overrides) -> Settings:
    values = {
        "jwt_secret_key": "secret",
        "postgres_password": "pw",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestDatabaseUrl:
    def test_built_from_postgres_fields(self):
        settings = _settings(
            postgres_host="db",
            postgres_port=5433,
            postgres_user="haven",
            postgres_db="haven_test",
        )

        assert settings.database_url == (
            "postgresql+asyncpg://haven:pw@db:5433/haven_test"
        )

    def test_override_wins(self):
        settings = _settings(database_url_override="sqlite+aiosqlite:///haven.db")

        assert settings.database_url == "sqlite+aiosqlite:///haven.db"


class TestCorsOrigins:
    def test_empty_by_default(self):
        assert _settings().cors_origins == []

    def test_comma_separated(self):
        settings = _settings(
            api_cors_origins=" https://a.example.com, ,https://b.example.com",
        )

        assert settings.cors_origins == [
            "https://a.example.com",
            "https://b.example.com",
        ]

    def test_list_is_accepted(self):
        settings = _settings(api_cors_origins=["https://a.example.com", "http://x"])

        assert settings.api_cors_origins == "https://a.example.com,http://x"


class TestGoCardlessConfigured:
    def test_both_credentials_present(self):
        settings = _settings(
            gocardless_secret_id="id",
            gocardless_secret_key="key",
        )

        assert settings.gocardless_configured

    @pytest.mark.parametrize(
        "overrides",
        [
            {},
            {"gocardless_secret_id": "id"},
            {"gocardless_secret_key": "key"},
            {"gocardless_secret_id": "", "gocardless_secret_key": "key"},
        ],
    )
    def test_missing_credentials(self, overrides):
        assert not _settings(**overrides).gocardless_configured


class TestDefaults:
    def test_sync_defaults(self):
        settings = _settings()

        assert settings.gocardless_daily_request_limit == 4
        assert settings.sync_transaction_window_days == 30
        assert settings.jwt_access_token_expire_hours == 1
        assert settings.cron_secret is None

    def test_required_fields(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
        monkeypatch.delenv("POSTGRES_PASSWORD", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestGetSettings:
    def test_cached(self):
        clear_settings_cache()

        assert get_settings() is get_settings()

    def test_cache_clear_reloads_environment(self, monkeypatch):
        clear_settings_cache()
        monkeypatch.setenv("GOCARDLESS_DAILY_REQUEST_LIMIT", "7")

        assert get_settings().gocardless_daily_request_limit == 7

        clear_settings_cache()
