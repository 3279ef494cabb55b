"""Application configuration objects."""

from __future__ import annotations

import os
from datetime import timedelta
from functools import lru_cache
from typing import Any, Type

from sqlalchemy.pool import NullPool, StaticPool


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class BaseConfig:
    """Shared defaults across all environments."""

    APP_NAME = "Aptitude Master"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite+pysqlite:///aptitude_dev.db",
    )
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change_me")
    JWT_TOKEN_LOCATION = ("headers",)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_SEC", "43200"))
    )

    # Question oracle (any OpenAI-compatible chat completions endpoint).
    AI_API_KEY = os.getenv("AI_API_KEY") or os.getenv("OPENROUTER_API_KEY", "")
    AI_API_BASE = os.getenv("AI_API_BASE", "https://openrouter.ai/api/v1")
    AI_GENERATOR_MODEL = os.getenv("AI_GENERATOR_MODEL", "google/gemini-2.0-flash-001")
    AI_GENERATOR_TEMPERATURE = float(os.getenv("AI_GENERATOR_TEMPERATURE", "0.7"))
    AI_CONNECT_TIMEOUT_SEC = int(os.getenv("AI_CONNECT_TIMEOUT_SEC", "15"))
    AI_READ_TIMEOUT_SEC = int(os.getenv("AI_READ_TIMEOUT_SEC", "90"))
    AI_APP_REFERER = os.getenv("AI_APP_REFERER", "http://localhost:5173")
    AI_APP_TITLE = os.getenv("AI_APP_TITLE", "Aptitude Master")
    ORACLE_ENABLE = _env_flag("ORACLE_ENABLE", "true")
    ORACLE_MAX_ATTEMPTS = int(os.getenv("ORACLE_MAX_ATTEMPTS", "2"))
    ORACLE_RETRY_BACKOFF = float(os.getenv("ORACLE_RETRY_BACKOFF", "2.0"))

    # Daily assignment and scoring rules.
    DAILY_QUESTION_COUNT = int(os.getenv("DAILY_QUESTION_COUNT", "10"))
    POINTS_CORRECT = int(os.getenv("POINTS_CORRECT", "100"))
    POINTS_WRONG = int(os.getenv("POINTS_WRONG", "-20"))
    POINTS_HINT = int(os.getenv("POINTS_HINT", "-10"))
    POINTS_GIVEUP = int(os.getenv("POINTS_GIVEUP", "10"))
    STREAK_LOSS = int(os.getenv("STREAK_LOSS", "-50"))
    LEVEL_THRESHOLDS = tuple(
        int(value) for value in os.getenv("LEVEL_THRESHOLDS", "25000,50000,75000,100000").split(",") if value.strip()
    )
    PROGRESS_TTL_SEC = int(os.getenv("PROGRESS_TTL_SEC", "300"))
    PROGRESS_MAX_ENTRIES = int(os.getenv("PROGRESS_MAX_ENTRIES", "10000"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    RATE_LIMIT_DEFAULTS = [limit.strip() for limit in os.getenv("RATE_LIMIT_DEFAULTS", "200 per minute;1000 per day").split(";") if limit.strip()]
    RATE_LIMIT_ASSIGNMENT = os.getenv("RATE_LIMIT_ASSIGNMENT", "20 per minute")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    JSON_SORT_KEYS = False
    SQLITE_TIMEOUT_SEC = int(os.getenv("SQLITE_TIMEOUT_SEC", "15"))
    SQLITE_BUSY_TIMEOUT_MS = int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "15000"))
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "poolclass": NullPool,
            "connect_args": {"timeout": SQLITE_TIMEOUT_SEC, "check_same_thread": False},
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {
            "pool_pre_ping": True,
            "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
            "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
            "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "30")),
        }


class DevConfig(BaseConfig):
    DEBUG = True


class ProdConfig(BaseConfig):
    DEBUG = False


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    JWT_SECRET_KEY = "test-secret"
    AI_API_KEY = "test-key"
    ORACLE_RETRY_BACKOFF = 0.0
    RATELIMIT_ENABLED = False


CONFIG_ALIASES: dict[str, Type[BaseConfig]] = {
    "dev": DevConfig,
    "development": DevConfig,
    "prod": ProdConfig,
    "production": ProdConfig,
    "test": TestConfig,
    "testing": TestConfig,
}


@lru_cache
def resolve_config(name_or_class: Any) -> Any:
    """Resolve config argument to the object expected by `app.config.from_object`."""

    if name_or_class is None:
        return DevConfig
    if isinstance(name_or_class, str):
        return CONFIG_ALIASES.get(name_or_class, name_or_class)
    return name_or_class
