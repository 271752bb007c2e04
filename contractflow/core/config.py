"""Configuration module for the contractflow engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from contractflow.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ConfigurationError(f"{name} must be a decimal number.") from exc


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    DB_POOL_SIZE: int
    DB_MAX_OVERFLOW: int
    DEFAULT_TAX_RATE: Decimal
    DEFAULT_WARRANTY_MONTHS: int
    DEFAULT_RETENTION_RATE: Decimal
    SEQUENCE_MAX_VALUE: int
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    CELERY_TASK_ALWAYS_EAGER: bool
    WORK_ORDER_QUEUE: str
    WORK_ORDER_TASK_MAX_RETRIES: int
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    broker_url = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))

    config = Config(
        APP_NAME="contractflow",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./contractflow.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        DB_POOL_SIZE=int(os.getenv("DB_POOL_SIZE", "10")),
        DB_MAX_OVERFLOW=int(os.getenv("DB_MAX_OVERFLOW", "20")),
        DEFAULT_TAX_RATE=_as_decimal("DEFAULT_TAX_RATE", "5"),
        DEFAULT_WARRANTY_MONTHS=int(os.getenv("DEFAULT_WARRANTY_MONTHS", "12")),
        DEFAULT_RETENTION_RATE=_as_decimal("DEFAULT_RETENTION_RATE", "0"),
        SEQUENCE_MAX_VALUE=int(os.getenv("SEQUENCE_MAX_VALUE", "9999")),
        CELERY_BROKER_URL=broker_url,
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", broker_url),
        CELERY_TASK_ALWAYS_EAGER=_as_bool(os.getenv("CELERY_TASK_ALWAYS_EAGER"), default=False),
        WORK_ORDER_QUEUE=os.getenv("WORK_ORDER_QUEUE", "work_orders"),
        WORK_ORDER_TASK_MAX_RETRIES=int(os.getenv("WORK_ORDER_TASK_MAX_RETRIES", "5")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if not Decimal("0") <= config.DEFAULT_TAX_RATE <= Decimal("100"):
        raise ConfigurationError("DEFAULT_TAX_RATE must be between 0 and 100.")
    if not Decimal("0") <= config.DEFAULT_RETENTION_RATE <= Decimal("100"):
        raise ConfigurationError("DEFAULT_RETENTION_RATE must be between 0 and 100.")
    if config.DB_POOL_SIZE < 1 or config.DB_MAX_OVERFLOW < 0:
        raise ConfigurationError("DB_POOL_SIZE must be >= 1 and DB_MAX_OVERFLOW >= 0.")
    if config.DEFAULT_WARRANTY_MONTHS < 0:
        raise ConfigurationError("DEFAULT_WARRANTY_MONTHS must be >= 0.")
    # Ids are rendered with a four digit sequence.
    if not 1 <= config.SEQUENCE_MAX_VALUE <= 9999:
        raise ConfigurationError("SEQUENCE_MAX_VALUE must be between 1 and 9999.")
    if config.WORK_ORDER_TASK_MAX_RETRIES < 0:
        raise ConfigurationError("WORK_ORDER_TASK_MAX_RETRIES must be >= 0.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
