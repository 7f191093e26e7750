"""
API rate limiting using slowapi.

One shared Limiter, keyed per caller: the API key when present (hashed, so
the secret never becomes a Redis key), else the client address. Disabled
unless RATE_LIMIT_ENABLED=true; enabled limiters keep counters in Redis so
all API workers share them.
"""

import hashlib

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from smaraa.config.settings import get_settings


def rate_limit_key(request: Request) -> str:
    api_key = request.headers.get("X-API-KEY")
    if api_key:
        return "key:" + hashlib.sha256(api_key.encode()).hexdigest()[:16]
    return "ip:" + get_remote_address(request)


def create_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=rate_limit_key,
        default_limits=[settings.rate_limit_default],
        storage_uri=str(settings.redis_url) if settings.rate_limit_enabled else "memory://",
        enabled=settings.rate_limit_enabled,
    )


limiter = create_limiter()
