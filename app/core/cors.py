from __future__ import annotations

from app.core.config import settings


def cors_allowed_origins() -> list[str]:
    return [origin.rstrip("/") for origin in settings.cors_allowed_origins if origin.strip()]


def cors_allow_origin_regex() -> str | None:
    regex = (settings.cors_allow_origin_regex or "").strip()
    return regex or None


def cors_allow_credentials() -> bool:
    # Browsers reject credentialed requests against a wildcard origin.
    return settings.cors_allow_credentials and "*" not in settings.cors_allowed_origins
