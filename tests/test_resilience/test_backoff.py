"""Tests for exponential backoff."""

from unittest.mock import AsyncMock

from smaraa.resilience.backoff import ExponentialBackoff


class TestExponentialBackoff:
    def test_doubles_without_jitter(self):
        backoff = ExponentialBackoff(base_delay=1.0, max_delay=100.0, jitter_range=0.0)
        assert [backoff.next_delay() for _ in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max_delay(self):
        backoff = ExponentialBackoff(base_delay=1.0, max_delay=5.0, jitter_range=0.0)
        delays = [backoff.next_delay() for _ in range(6)]
        assert max(delays) == 5.0

    def test_jitter_stays_in_range(self):
        backoff = ExponentialBackoff(base_delay=2.0, max_delay=100.0, jitter_range=0.5)
        for _ in range(50):
            backoff.reset()
            assert 1.0 <= backoff.next_delay() <= 3.0

    def test_reset_restarts_sequence(self):
        backoff = ExponentialBackoff(base_delay=1.0, jitter_range=0.0)
        backoff.next_delay()
        backoff.next_delay()
        assert backoff.attempt == 2
        backoff.reset()
        assert backoff.attempt == 0
        assert backoff.next_delay() == 1.0

    async def test_wait_uses_injected_sleep(self):
        sleep = AsyncMock()
        backoff = ExponentialBackoff(base_delay=0.5, jitter_range=0.0, sleep=sleep)
        delay = await backoff.wait()
        assert delay == 0.5
        sleep.assert_awaited_once_with(0.5)
