"""Root pytest configuration for test discovery and auto-skip behavior.

This conftest.py makes all tests visible in VS Code test explorer while
auto-skipping slow/manual tests unless explicitly enabled via environment
variables or pytest options.

Test Structure:
    tests/
    ├── haven/                 # Bank connection and sync engine tests
    │   ├── unit/              # Fast, isolated tests (SQLite in memory)
    │   ├── api/               # HTTP endpoints through httpx.ASGITransport
    │   └── e2e/               # Full connect -> complete -> sync flows
    ├── haven_auth/            # JWT verification tests
    └── haven_config/          # Settings tests

Environment Variables:
    RUN_INTEGRATION=1    Run @pytest.mark.integration tests
    RUN_MANUAL=1         Run @pytest.mark.manual tests (real GoCardless)
    RUN_ALL_TESTS=1      Run all tests (overrides other settings)

Pytest Options:
    --run-integration    Run integration tests
    --run-manual         Run manual tests
    --run-all            Run all tests
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from haven_config import Settings, clear_settings_cache

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Load .env.dev for tests (same as local development)
CONFIG_DIR = PROJECT_ROOT.parent.parent / "config"
if (CONFIG_DIR / ".env.dev").exists():
    load_dotenv(CONFIG_DIR / ".env.dev")
elif (CONFIG_DIR / ".env").exists():
    load_dotenv(CONFIG_DIR / ".env")

# Required settings, so get_settings() works without a .env file
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-haven-tests")
os.environ.setdefault("POSTGRES_PASSWORD", "test-postgres-password")

TEST_JWT_SECRET = "test-jwt-secret-key-for-haven-tests"
TEST_CRON_SECRET = "test-cron-secret"


def _flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked with @pytest.mark.integration",
    )
    parser.addoption(
        "--run-manual",
        action="store_true",
        default=False,
        help="Run tests marked with @pytest.mark.manual",
    )
    parser.addoption(
        "--run-all",
        action="store_true",
        default=False,
        help="Run all tests regardless of markers",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Tests against a real PostgreSQL database (auto-skipped)",
    )
    config.addinivalue_line(
        "markers",
        "manual: Tests calling the real GoCardless API (auto-skipped)",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take more than 1 second",
    )


def pytest_collection_modifyitems(config, items):
    """Auto-skip tests based on markers unless explicitly enabled."""
    if config.getoption("--run-all") or _flag("RUN_ALL_TESTS"):
        return

    run_integration = config.getoption("--run-integration") or _flag(
        "RUN_INTEGRATION",
    )
    run_manual = config.getoption("--run-manual") or _flag("RUN_MANUAL")

    skip_integration = pytest.mark.skip(
        reason="Integration test - run with --run-integration or RUN_INTEGRATION=1",
    )
    skip_manual = pytest.mark.skip(
        reason="Manual test - run with --run-manual or RUN_MANUAL=1",
    )

    for item in items:
        item_markers = {mark.name for mark in item.iter_markers()}
        if not run_integration and "integration" in item_markers:
            item.add_marker(skip_integration)
        if not run_manual and "manual" in item_markers:
            item.add_marker(skip_manual)


@pytest.fixture(scope="session", autouse=True)
def configure_app_settings():
    """Start and end the session with a fresh settings cache."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def test_settings() -> Settings:
    """Settings independent of the developer's environment and .env files."""
    return Settings(
        _env_file=None,
        jwt_secret_key=TEST_JWT_SECRET,
        postgres_password="test-postgres-password",
        database_url_override="sqlite+aiosqlite:///:memory:",
        public_base_url="https://haven.example.com",
        gocardless_secret_id="test-secret-id",
        gocardless_secret_key="test-secret-key",
        gocardless_daily_request_limit=4,
        sync_transaction_window_days=30,
        daily_sync_user_delay_seconds=0,
        cron_secret=TEST_CRON_SECRET,
        connection_watch_poll_seconds=0,
        log_level="WARNING",
    )
