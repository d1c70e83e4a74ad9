from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "y", "on"}
_ENVIRONMENTS = {"development", "test", "staging", "production"}

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
)


def _env_str(name: str, default: str | None = None) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_flag(name: str, default: bool) -> bool:
    value = _env_str(name)
    if value is None:
        return default
    return value.lower() in _TRUTHY


def _env_number(name: str, default: int) -> int:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {value!r}.") from exc


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = _env_str(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    environment: str
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    resume_generator_rate_limit: str
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    generation_log_db_path: str
    max_job_description_chars: int


def _load_settings() -> Settings:
    loaded = Settings(
        api_key=_env_str("API_KEY"),
        environment=(_env_str("ENVIRONMENT", "development") or "development").lower(),
        log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        sentry_dsn=_env_str("SENTRY_DSN"),
        rate_limit=_env_str("RATE_LIMIT", "60/minute") or "60/minute",
        rate_limit_enabled=_env_flag("RATE_LIMIT_ENABLED", True),
        resume_generator_rate_limit=_env_str("RESUME_GENERATOR_RATE_LIMIT", "30/minute") or "30/minute",
        cors_allowed_origins=_env_csv("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS),
        cors_allow_origin_regex=_env_str("CORS_ALLOW_ORIGIN_REGEX"),
        cors_allow_credentials=_env_flag("CORS_ALLOW_CREDENTIALS", False),
        generation_log_db_path=_env_str("GENERATION_LOG_DB_PATH", "data/resume_generations.db")
        or "data/resume_generations.db",
        max_job_description_chars=_env_number("MAX_JOB_DESCRIPTION_CHARS", 50000),
    )

    if loaded.environment not in _ENVIRONMENTS:
        raise RuntimeError(f"ENVIRONMENT must be one of {sorted(_ENVIRONMENTS)}, got {loaded.environment!r}.")
    if loaded.max_job_description_chars < 1000:
        raise RuntimeError("MAX_JOB_DESCRIPTION_CHARS must be at least 1000.")
    return loaded


settings = _load_settings()
