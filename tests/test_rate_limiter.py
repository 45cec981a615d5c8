"""Tests for the token bucket rate limiter."""
import asyncio

import pytest

from legisync.ingestion.rate_limiter import (
    RateLimiterResetError,
    RateLimiterTimeoutError,
    TokenBucketRateLimiter,
    get_congress_api_limiter,
    reset_congress_api_limiter,
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTokenAccounting:
    """Synchronous token bookkeeping with a controlled clock."""

    def test_starts_full(self) -> None:
        limiter = TokenBucketRateLimiter(max_tokens=10, refill_rate_per_hour=1000)
        stats = limiter.get_stats()
        assert stats.current_tokens == 10
        assert stats.max_tokens == 10
        assert stats.waiting_requests == 0

    def test_initial_tokens(self) -> None:
        limiter = TokenBucketRateLimiter(max_tokens=10, refill_rate_per_hour=1000, initial_tokens=3)
        assert limiter.get_stats().current_tokens == 3

    def test_try_acquire_consumes_exactly_one(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketRateLimiter(max_tokens=5, refill_rate_per_hour=3600, clock=clock)

        for expected in (4, 3, 2, 1, 0):
            assert limiter.try_acquire() is True
            assert limiter.get_stats().current_tokens == expected

        assert limiter.try_acquire() is False
        assert limiter.get_stats().requests_this_hour == 5

    def test_refill_over_time(self) -> None:
        clock = FakeClock()
        # 3600/hour is one token per second
        limiter = TokenBucketRateLimiter(max_tokens=5, refill_rate_per_hour=3600, initial_tokens=0, clock=clock)

        clock.advance(2.5)
        assert limiter.get_stats().current_tokens == 2

    def test_never_exceeds_capacity(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketRateLimiter(max_tokens=5, refill_rate_per_hour=3600, clock=clock)
        limiter.try_acquire()

        clock.advance(1_000_000)
        assert limiter.get_stats().current_tokens == 5

    def test_hourly_counter_resets(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketRateLimiter(max_tokens=5, refill_rate_per_hour=3600, clock=clock)
        limiter.try_acquire()
        limiter.try_acquire()
        assert limiter.get_stats().requests_this_hour == 2

        clock.advance(3600)
        assert limiter.get_stats().requests_this_hour == 0

    def test_reset_refills(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketRateLimiter(max_tokens=3, refill_rate_per_hour=3600, initial_tokens=0, clock=clock)
        limiter.reset()
        stats = limiter.get_stats()
        assert stats.current_tokens == 3
        assert stats.requests_this_hour == 0

    @pytest.mark.parametrize("max_tokens,rate", [(0, 100), (10, 0), (10, -5)])
    def test_invalid_configuration(self, max_tokens: int, rate: float) -> None:
        with pytest.raises(ValueError):
            TokenBucketRateLimiter(max_tokens=max_tokens, refill_rate_per_hour=rate)


class TestAcquire:
    """Async acquire, queueing and rejection."""

    @pytest.mark.asyncio
    async def test_acquire_immediate(self) -> None:
        limiter = TokenBucketRateLimiter(max_tokens=2, refill_rate_per_hour=3600)
        await limiter.acquire()
        assert limiter.get_stats().current_tokens == 1

    @pytest.mark.asyncio
    async def test_timeout_rejected_up_front(self) -> None:
        # Empty bucket, one token per second: a 0.1s budget can never be met
        limiter = TokenBucketRateLimiter(max_tokens=1, refill_rate_per_hour=3600, initial_tokens=0)

        with pytest.raises(RateLimiterTimeoutError):
            await limiter.acquire(timeout=0.1)
        assert limiter.get_stats().waiting_requests == 0

    @pytest.mark.asyncio
    async def test_queued_waiter_times_out(self) -> None:
        # The wait looks short enough to queue, but the frozen clock never refills
        clock = FakeClock()
        limiter = TokenBucketRateLimiter(
            max_tokens=1, refill_rate_per_hour=360_000, initial_tokens=0, clock=clock
        )

        with pytest.raises(RateLimiterTimeoutError, match="timeout after"):
            await asyncio.wait_for(limiter.acquire(timeout=0.05), timeout=2)

        stats = limiter.get_stats()
        assert stats.waiting_requests == 0
        assert stats.requests_this_hour == 0

    @pytest.mark.asyncio
    async def test_waiter_served_after_refill(self) -> None:
        # 100 tokens/second
        limiter = TokenBucketRateLimiter(max_tokens=1, refill_rate_per_hour=360_000, initial_tokens=0)

        await asyncio.wait_for(limiter.acquire(timeout=5), timeout=2)
        assert limiter.get_stats().requests_this_hour == 1

    @pytest.mark.asyncio
    async def test_waiters_served_in_submission_order(self) -> None:
        limiter = TokenBucketRateLimiter(max_tokens=1, refill_rate_per_hour=360_000, initial_tokens=0)
        served = []

        async def worker(n: int) -> None:
            await limiter.acquire(timeout=5)
            served.append(n)

        tasks = [asyncio.create_task(worker(n)) for n in range(5)]
        await asyncio.wait_for(asyncio.gather(*tasks), timeout=5)

        assert served == [0, 1, 2, 3, 4]
        assert limiter.get_stats().requests_this_hour == 5

    @pytest.mark.asyncio
    async def test_try_acquire_does_not_jump_queue(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketRateLimiter(max_tokens=1, refill_rate_per_hour=3600, initial_tokens=0, clock=clock)

        waiter = asyncio.create_task(limiter.acquire(timeout=30))
        await asyncio.sleep(0)
        assert limiter.get_stats().waiting_requests == 1

        # A token is now available but belongs to the queued waiter
        clock.advance(5)
        assert limiter.try_acquire() is False

        limiter.reset()
        with pytest.raises(RateLimiterResetError):
            await waiter

    @pytest.mark.asyncio
    async def test_reset_rejects_pending(self) -> None:
        limiter = TokenBucketRateLimiter(max_tokens=1, refill_rate_per_hour=3600, initial_tokens=0)

        pending = [asyncio.create_task(limiter.acquire(timeout=30)) for _ in range(3)]
        await asyncio.sleep(0)
        assert limiter.get_stats().waiting_requests == 3

        limiter.reset()

        results = await asyncio.gather(*pending, return_exceptions=True)
        assert all(isinstance(r, RateLimiterResetError) for r in results)
        stats = limiter.get_stats()
        assert stats.waiting_requests == 0
        assert stats.current_tokens == 1

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue(self) -> None:
        limiter = TokenBucketRateLimiter(max_tokens=1, refill_rate_per_hour=3600, initial_tokens=0)

        task = asyncio.create_task(limiter.acquire(timeout=30))
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert limiter.get_stats().waiting_requests == 0


class TestSharedLimiter:
    def test_get_returns_same_instance(self) -> None:
        assert get_congress_api_limiter() is get_congress_api_limiter()

    def test_reset_drops_instance(self) -> None:
        first = get_congress_api_limiter()
        reset_congress_api_limiter()
        assert get_congress_api_limiter() is not first
