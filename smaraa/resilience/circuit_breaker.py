"""Circuit breaker for wrapping async provider calls.

State machine: CLOSED → OPEN → HALF_OPEN → CLOSED.

One breaker instance exists per external dependency (embedding and
generation), so a failing generation endpoint never blocks embeddings and
vice versa.

Usage:
    breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=30.0, name="embedding")
    try:
        result = await breaker.call(some_async_fn, arg1, arg2)
    except CircuitOpenError:
        # Fail fast
"""

import enum
import logging
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(enum.Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised when calling through an open circuit breaker."""

    def __init__(self, name: str, retry_after: float) -> None:
        super().__init__(f"Circuit breaker {name} is OPEN (retry in {retry_after:.1f}s)")
        self.name = name
        self.retry_after = retry_after


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of a breaker for health reporting."""

    name: str
    state: CircuitState
    consecutive_failures: int
    opened_at: float | None


class CircuitBreaker:
    """Wraps any async callable with circuit breaker protection.

    - CLOSED: Calls pass through. Consecutive failures tracked.
    - OPEN: Calls rejected with CircuitOpenError until recovery_timeout
      has elapsed since the breaker opened.
    - HALF_OPEN: Exactly one trial call is admitted; concurrent callers are
      rejected while it is in flight. Success → CLOSED, failure → OPEN with
      a fresh cooldown.

    State changes happen only between awaits, so under a single event loop
    each transition is atomic.

    Args:
        failure_threshold: Consecutive failures before opening circuit.
        recovery_timeout: Seconds before attempting a recovery trial call.
        name: Name for logging and metrics.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        name: str = "circuit_breaker",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._name = name
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state

    @property
    def consecutive_failures(self) -> int:
        """Number of consecutive failures."""
        return self._consecutive_failures

    def snapshot(self) -> BreakerSnapshot:
        return BreakerSnapshot(
            name=self._name,
            state=self._state,
            consecutive_failures=self._consecutive_failures,
            opened_at=self._opened_at,
        )

    def _admit(self) -> bool:
        """Decide whether a call may proceed; returns True if it is the trial call."""
        if self._state == CircuitState.CLOSED:
            return False

        if self._state == CircuitState.OPEN:
            elapsed = self._clock() - (self._opened_at or 0.0)
            if elapsed < self._recovery_timeout:
                raise CircuitOpenError(self._name, self._recovery_timeout - elapsed)
            self._state = CircuitState.HALF_OPEN
            logger.info("Circuit breaker %s: OPEN → HALF_OPEN (recovery trial)", self._name)

        # HALF_OPEN: single trial slot
        if self._trial_in_flight:
            raise CircuitOpenError(self._name, 0.0)
        self._trial_in_flight = True
        return True

    async def call(
        self,
        fn: Callable[..., Coroutine[Any, Any, T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute an async function through the circuit breaker.

        Raises:
            CircuitOpenError: If the circuit is open (or a trial call is already
                in flight) and the call was not attempted.
        """
        is_trial = self._admit()

        try:
            result = await fn(*args, **kwargs)
        except Exception:
            self._record_failure(is_trial)
            raise
        finally:
            if is_trial:
                self._trial_in_flight = False

        self._record_success(is_trial)
        return result

    def _record_success(self, is_trial: bool) -> None:
        # Only the trial call may close a breaker that opened mid-flight
        if is_trial:
            logger.info("Circuit breaker %s: HALF_OPEN → CLOSED (trial call succeeded)", self._name)
        elif self._state != CircuitState.CLOSED:
            return
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = None

    def _record_failure(self, is_trial: bool) -> None:
        """Record a failure and potentially open the circuit."""
        if is_trial:
            self._consecutive_failures += 1
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            logger.warning("Circuit breaker %s: HALF_OPEN → OPEN (trial call failed)", self._name)
            return

        # Late failures of calls admitted before the breaker opened keep the current cooldown
        if self._state != CircuitState.CLOSED:
            return

        self._consecutive_failures += 1
        if self._consecutive_failures >= self._failure_threshold:
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            logger.warning(
                "Circuit breaker %s: CLOSED → OPEN after %d failures",
                self._name,
                self._consecutive_failures,
            )
