from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address)


def rate_limit(limit_value: str | None = None):
    if settings.rate_limit_enabled:
        return limiter.limit(limit_value or settings.rate_limit)

    def decorator(func):
        return func

    return decorator
