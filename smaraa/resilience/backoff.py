"""
Exponential backoff with jitter for retry loops.

Shared by the provider guards (embedding, generation), the store retry
wrapper and the retention sweep loop.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable

Sleeper = Callable[[float], Awaitable[None]]


class ExponentialBackoff:
    """
    Exponential backoff with jitter.

    Computes delays as: min(base * multiplier^attempt, max_delay) +/- jitter.
    Call reset() after a successful operation to zero the attempt counter.

    Usage:
        backoff = ExponentialBackoff(base_delay=0.5, max_delay=8.0)
        for attempt in range(max_attempts):
            try:
                return await do_call()
            except TransientError:
                await backoff.wait()
    """

    def __init__(
        self,
        base_delay: float = 0.5,
        max_delay: float = 30.0,
        multiplier: float = 2.0,
        jitter_range: float = 0.5,
        sleep: Sleeper | None = None,
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.jitter_range = jitter_range
        self._sleep = sleep or asyncio.sleep
        self._attempt = 0

    @property
    def attempt(self) -> int:
        """Number of delays handed out since the last reset."""
        return self._attempt

    def next_delay(self) -> float:
        """Return the next delay and advance the attempt counter."""
        delay = min(
            self.base_delay * (self.multiplier ** self._attempt),
            self.max_delay,
        )
        jitter = delay * random.uniform(-self.jitter_range, self.jitter_range)
        self._attempt += 1
        return max(0.0, delay + jitter)

    async def wait(self) -> float:
        """Sleep for the next delay and return how long was slept."""
        delay = self.next_delay()
        await self._sleep(delay)
        return delay

    def reset(self) -> None:
        """Reset the attempt counter after a successful operation."""
        self._attempt = 0
