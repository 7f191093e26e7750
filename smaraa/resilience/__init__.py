"""Resilience primitives for external dependencies: backoff, circuit breaker, guard."""

from smaraa.resilience.backoff import ExponentialBackoff
from smaraa.resilience.circuit_breaker import (
    BreakerSnapshot,
    CircuitBreaker,
    CircuitOpenError,
    CircuitState,
)
from smaraa.resilience.guard import NonRetryableProviderError, ProviderGuard

__all__ = [
    "BreakerSnapshot",
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "ExponentialBackoff",
    "NonRetryableProviderError",
    "ProviderGuard",
]
