"""HTTP middleware."""

from smaraa.api.middleware.timeout import TimeoutMiddleware

__all__ = ["TimeoutMiddleware"]
