"""
Runtime settings loaded from `.env` and the process environment.

Everything the API needs to know about its environment is read here once
(`get_settings()` is cached). Feature code receives a `Settings` instance
explicitly instead of calling `os.environ` itself.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

_UTC_OFFSET_RE = re.compile(r"^[+-]\d{1,2}:\d{2}$")


class Settings(BaseModel):
    """Typed runtime configuration."""

    model_config = ConfigDict(extra="ignore")

    database_url: str = ""
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""

    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    # No timeouts unless explicitly configured: a hung statement keeps its connection.
    db_pool_acquire_timeout: float | None = None
    db_command_timeout: float | None = None
    db_time_zone: str = "-08:00"
    db_create_schema: bool = False

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    car_strict_validation: bool = False
    car_report_missing_rows: bool = False

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @field_validator("db_time_zone")
    @classmethod
    def validate_time_zone(cls, value: str) -> str:
        # Interpolated into a SET statement, so only a bare UTC offset is allowed.
        value = value.strip()
        if not _UTC_OFFSET_RE.match(value):
            raise ValueError(f"db_time_zone must look like '-08:00', got {value!r}")
        return value

    @field_validator("db_pool_min_size", "db_pool_max_size", "port")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be greater than 0.")
        return value

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> "Settings":
        if self.db_pool_min_size > self.db_pool_max_size:
            raise ValueError("db_pool_min_size cannot exceed db_pool_max_size.")
        return self

    def dsn(self) -> str:
        """
        Connection string for asyncpg.

        `DATABASE_URL` wins; otherwise it is assembled from the `DB_*` parts.
        """
        url = self.database_url.strip()
        if url:
            return _sanitize_database_url(url)
        if not self.db_user or not self.db_name:
            raise RuntimeError("DATABASE_URL is not set and DB_USER/DB_NAME are incomplete.")
        credentials = quote(self.db_user, safe="")
        if self.db_password:
            credentials += ":" + quote(self.db_password, safe="")
        return f"postgresql://{credentials}@{self.db_host}:{self.db_port}/{self.db_name}"


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "y", "on"}:
        return True
    if value in {"0", "false", "no", "n", "off"}:
        return False
    raise RuntimeError(f"{name} must be boolean-like, got {raw!r}")


def _env_optional(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_settings(*, load_env: bool = True) -> Settings:
    """Load settings from `.env` and the process environment."""

    if load_env:
        load_dotenv()

    values: dict[str, object] = {
        "database_url": os.getenv("DATABASE_URL", ""),
        "db_host": os.getenv("DB_HOST", "localhost"),
        "db_port": os.getenv("DB_PORT", "5432"),
        "db_user": os.getenv("DB_USER", ""),
        "db_password": os.getenv("DB_PASSWORD", ""),
        "db_name": os.getenv("DB_NAME", ""),
        "db_pool_min_size": os.getenv("DB_POOL_MIN_SIZE", "1"),
        "db_pool_max_size": os.getenv("DB_POOL_MAX_SIZE", "10"),
        "db_pool_acquire_timeout": _env_optional("DB_POOL_ACQUIRE_TIMEOUT"),
        "db_command_timeout": _env_optional("DB_COMMAND_TIMEOUT"),
        "db_time_zone": os.getenv("DB_TIME_ZONE", "-08:00"),
        "db_create_schema": _env_bool("DB_CREATE_SCHEMA", False),
        "cors_allow_origins": _env_list("CORS_ALLOW_ORIGINS", ["*"]),
        "car_strict_validation": _env_bool("CAR_STRICT_VALIDATION", False),
        "car_report_missing_rows": _env_bool("CAR_REPORT_MISSING_ROWS", False),
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": os.getenv("PORT", "8000"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached accessor for process settings."""

    return load_settings()
