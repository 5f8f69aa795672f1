"""Storefront configuration with environment variables and K8s secrets support."""
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# K8s Secrets Config
# =============================================================================
# Secret path: /etc/{SECRETS_FOLDER_NAME}/{PROJECT_KEY}_{secret_name}
# e.g., /etc/secrets/storefront_database-password
SECRETS_FOLDER_NAME: str = os.getenv("SECRETS_FOLDER_NAME", "secrets")
PROJECT_KEY: str = os.getenv("PROJECT_KEY", "storefront")
SECRETS_BASE_PATH: str = f"/etc/{SECRETS_FOLDER_NAME}" if SECRETS_FOLDER_NAME else ""


class Environment(str, Enum):
    LOCAL = "local"
    DEV = "dev"
    UAT = "uat"
    PREPROD = "preprod"
    PROD = "prod"
    TEST = "test"


def read_secret_from_file(secret_name: str, base_path: str | None) -> str | None:
    """Read secret from K8s mounted file."""
    if not base_path:
        return None
    secret_path = Path(base_path) / secret_name
    if not secret_path.exists():
        return None
    try:
        return secret_path.read_text().strip()
    except OSError:
        return None


def get_k8s_secret_name(secret_name: str) -> str:
    """Get K8s secret filename: {PROJECT_KEY}_{secret_name}"""
    return f"{PROJECT_KEY}_{secret_name}"


def get_secret(env_var: str, secret_file_name: str | None = None, default: str | None = None) -> str | None:
    """Get secret: K8s file > env var > {env_var}_FILE > default."""
    if secret_file_name and SECRETS_BASE_PATH:
        k8s_name = get_k8s_secret_name(secret_file_name)
        if value := read_secret_from_file(k8s_name, SECRETS_BASE_PATH):
            return value
    if value := os.getenv(env_var):
        return value
    if file_path := os.getenv(f"{env_var}_FILE"):
        if value := read_secret_from_file(Path(file_path).name, str(Path(file_path).parent)):
            return value
    return default


def get_env_file() -> str:
    """Get .env file path for the current ENV (defaults to local)."""
    env = os.getenv("ENV", Environment.LOCAL.value)
    return f".env_{env}"


ENV_FILE = get_env_file()


# =============================================================================
# Config Classes
# =============================================================================

class DatabaseCredentials(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="DATABASE_", extra="ignore")

    host: str
    port: int = 5432
    user: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)
    db_name: str

    @model_validator(mode="before")
    @classmethod
    def _load_secrets(cls, data: dict[str, Any]) -> dict[str, Any]:
        if not data.get("user"):
            data["user"] = get_secret("DATABASE_USER", "database-user")
        if not data.get("password"):
            data["password"] = get_secret("DATABASE_PASSWORD", "database-password")
        return data


class DatabaseConfig(BaseSettings):
    """Database configuration with connection pooling settings.

    ``dsn`` short-circuits the credential lookup; it is how local runs and the
    test-suite point the pool at a sqlite file.
    """
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="DATABASE_", extra="ignore")

    driver: str = "postgresql+asyncpg"
    dsn: str | None = None
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 15
    pool_recycle: int = 900
    pool_pre_ping: bool = True
    echo: bool = False

    @property
    def credentials(self) -> DatabaseCredentials:
        return DatabaseCredentials()  # type: ignore[call-arg]

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def url(self) -> str:
        """Build database URL from credentials."""
        if self.dsn:
            return self.dsn
        creds = self.credentials
        password = creds.password.get_secret_value() if creds.password else ""
        return f"{self.driver}://{creds.user}:{quote_plus(password)}@{creds.host}:{creds.port}/{creds.db_name}"


class LoggingConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="LOG_", extra="ignore")

    level: str = "INFO"
    format: str = "console"
    level_sqlalchemy: str = "WARNING"

    @field_validator("format")
    @classmethod
    def _known_format(cls, v: str) -> str:
        if v not in ("console", "json"):
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")
        return v


class RepositoryConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="REPOSITORY_", extra="ignore")

    default_page: int = Field(default=1, ge=1)
    default_page_size: int = Field(default=10, ge=1)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, extra="ignore")

    env: Environment = Field(default=Environment.LOCAL)
    app_name: str = Field(default="Storefront")
    app_version: str = Field(default="0.1.0")
    debug: bool = Field(default=False)

    @field_validator("debug")
    @classmethod
    def _no_debug_in_prod(cls, v: bool, info) -> bool:
        if info.data.get("env") == Environment.PROD and v:
            raise ValueError(f"{info.field_name} cannot be True in production")
        return v

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PROD

    @property
    def is_development(self) -> bool:
        return self.env in (Environment.LOCAL, Environment.DEV)


# =============================================================================
# Lazy Loaders (cached)
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    return Settings()

@lru_cache
def get_database_config() -> DatabaseConfig:
    return DatabaseConfig()

@lru_cache
def get_logging_config() -> LoggingConfig:
    return LoggingConfig()

@lru_cache
def get_repository_config() -> RepositoryConfig:
    return RepositoryConfig()


# =============================================================================
# Global Instances
# =============================================================================

settings = get_settings()
database_config = get_database_config()
logging_config = get_logging_config()
repository_config = get_repository_config()
