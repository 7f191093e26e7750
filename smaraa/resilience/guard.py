"""Retry + timeout + circuit breaker composition for one external dependency.

A ``ProviderGuard`` runs a coroutine factory with a per-attempt timeout,
retries failed attempts with exponential backoff and jitter, and wraps the
whole retry loop in a circuit breaker. The breaker therefore counts one
failure per call that exhausted its retries, not one per attempt.

Failures that cannot succeed on retry (``NonRetryableProviderError``) skip
the remaining attempts but still count against the breaker.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from smaraa.errors import ProviderUnavailable
from smaraa.observability.metrics import get_metrics
from smaraa.resilience.backoff import ExponentialBackoff, Sleeper
from smaraa.resilience.circuit_breaker import CircuitBreaker, CircuitOpenError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class NonRetryableProviderError(Exception):
    """Provider rejected the request in a way retrying will not fix."""


class ProviderGuard:
    """Guards calls to one external dependency.

    Args:
        name: Guard name (``embedding`` or ``generation``).
        breaker: Circuit breaker owned by this guard.
        max_attempts: Attempts per call before giving up.
        timeout: Per-attempt timeout in seconds.
        base_delay: First backoff delay in seconds.
        max_delay: Backoff ceiling in seconds.
        jitter_range: Fractional jitter applied to each delay.
        sleep: Sleep coroutine (injectable for tests).
    """

    def __init__(
        self,
        name: str,
        breaker: CircuitBreaker,
        max_attempts: int = 3,
        timeout: float = 20.0,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
        jitter_range: float = 0.5,
        sleep: Sleeper | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.name = name
        self.breaker = breaker
        self._max_attempts = max_attempts
        self._timeout = timeout
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._jitter_range = jitter_range
        self._sleep = sleep

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory()`` under retry, timeout and breaker protection.

        ``factory`` is called once per attempt and must return a fresh
        awaitable each time.

        Raises:
            ProviderUnavailable: Breaker open, or every attempt failed.
        """
        metrics = get_metrics()
        try:
            result = await self.breaker.call(self._with_retries, factory)
        except CircuitOpenError as e:
            metrics.record_provider_call(self.name, "rejected")
            raise ProviderUnavailable(self.name, str(e)) from e
        except Exception as e:
            metrics.record_provider_call(self.name, "failure")
            raise ProviderUnavailable(self.name, f"{type(e).__name__}: {e}") from e
        finally:
            metrics.set_breaker_state(self.name, self.breaker.state.value)

        metrics.record_provider_call(self.name, "success")
        return result

    async def _with_retries(self, factory: Callable[[], Awaitable[T]]) -> T:
        backoff = ExponentialBackoff(
            base_delay=self._base_delay,
            max_delay=self._max_delay,
            jitter_range=self._jitter_range,
            sleep=self._sleep,
        )
        last_error: Exception | None = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                async with asyncio.timeout(self._timeout):
                    return await factory()
            except NonRetryableProviderError:
                raise
            except Exception as e:
                # TimeoutError from asyncio.timeout lands here as well
                last_error = e
                if attempt == self._max_attempts:
                    break
                delay = await backoff.wait()
                logger.warning(
                    "Provider attempt failed, retrying",
                    guard=self.name,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    delay_seconds=round(delay, 3),
                    error=f"{type(e).__name__}: {e}",
                )

        logger.error(
            "Provider call exhausted retries",
            guard=self.name,
            attempts=self._max_attempts,
            error=f"{type(last_error).__name__}: {last_error}",
        )
        assert last_error is not None
        raise last_error
