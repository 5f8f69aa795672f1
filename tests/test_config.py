"""Tests for configuration, logging setup and the connection pool."""

import json
import logging

import pytest
import structlog
from pydantic import ValidationError
from sqlalchemy import text

from storefront.core.database import AsyncDBPool
from storefront.core.logging_config import setup_logging
from storefront.main_config import (
    DatabaseConfig,
    Environment,
    LoggingConfig,
    RepositoryConfig,
    Settings,
    settings,
)

# =============================================================================
# Config classes
# =============================================================================


def test_dsn_overrides_credentials() -> None:
    config = DatabaseConfig(dsn="sqlite+aiosqlite:///./storefront.db")

    assert config.url == "sqlite+aiosqlite:///./storefront.db"
    assert config.is_sqlite is True


def test_url_built_from_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_HOST", "db")
    monkeypatch.setenv("DATABASE_DB_NAME", "shop")
    monkeypatch.setenv("DATABASE_USER", "app")
    monkeypatch.setenv("DATABASE_PASSWORD", "p@ss")

    config = DatabaseConfig()

    assert config.url == "postgresql+asyncpg://app:p%40ss@db:5432/shop"
    assert config.is_sqlite is False


def test_logging_format_is_checked() -> None:
    with pytest.raises(ValidationError):
        LoggingConfig(format="xml")


def test_repository_defaults_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOSITORY_DEFAULT_PAGE_SIZE", "25")

    assert RepositoryConfig().default_page_size == 25


def test_debug_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(env=Environment.PROD, debug=True)

    assert Settings(env=Environment.DEV).is_development is True


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_json(restore_logging, capsys: pytest.CaptureFixture[str]) -> None:
    setup_logging(LoggingConfig(format="json", level="info"))

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)

    assert record["event"] == "logging_configured"
    assert record["log_format"] == "json"
    assert (record["app"], record["env"]) == (settings.app_name, settings.env.value)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


# =============================================================================
# Connection pool
# =============================================================================


async def test_pool_requires_init() -> None:
    with pytest.raises(RuntimeError):
        AsyncDBPool.get_session_maker()


async def test_pool_session_and_idempotent_init(tmp_path) -> None:
    config = DatabaseConfig(dsn=f"sqlite+aiosqlite:///{tmp_path / 'pool.db'}")
    await AsyncDBPool.init(config)
    maker = AsyncDBPool.get_session_maker()
    try:
        await AsyncDBPool.init(config)
        assert AsyncDBPool.get_session_maker() is maker

        async with AsyncDBPool.get_session() as session:
            assert (await session.execute(text("select 1"))).scalar_one() == 1
    finally:
        await AsyncDBPool.dispose()

    with pytest.raises(RuntimeError):
        AsyncDBPool.get_session_maker()
