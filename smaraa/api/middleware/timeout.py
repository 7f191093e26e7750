"""
Request timeout middleware.

Bounds every request so a stalled provider or store call cannot hold a
worker indefinitely. Generation-backed routes get their own, usually
longer, budget. Returns 504 on expiry, which the caller may retry.
"""

import asyncio

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

_UNBOUNDED_PREFIXES = ("/healthz",)


class TimeoutMiddleware(BaseHTTPMiddleware):
    """
    Enforce a maximum request duration per path prefix.

    Args:
        app: ASGI application
        timeout_seconds: Budget for any path without an override
        overrides: Path prefix -> budget; the longest matching prefix wins
    """

    def __init__(
        self,
        app,
        timeout_seconds: float = 30.0,
        overrides: dict[str, float] | None = None,
    ):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds
        self.overrides = dict(sorted((overrides or {}).items(), key=lambda kv: -len(kv[0])))

    def budget_for(self, path: str) -> float | None:
        """Seconds allowed for a path, or None when the path is unbounded."""
        if path.startswith(_UNBOUNDED_PREFIXES):
            return None
        for prefix, seconds in self.overrides.items():
            if path.startswith(prefix):
                return seconds
        return self.timeout_seconds

    async def dispatch(self, request: Request, call_next):
        budget = self.budget_for(request.url.path)
        if budget is None or budget <= 0:
            return await call_next(request)

        try:
            async with asyncio.timeout(budget):
                return await call_next(request)
        except TimeoutError:
            logger.warning(
                "Request exceeded its time budget",
                path=request.url.path,
                budget_seconds=budget,
            )
            return JSONResponse(
                status_code=504,
                content={
                    "detail": f"Request exceeded {budget:g}s",
                    "error_type": "timeout",
                    "retryable": True,
                },
            )
