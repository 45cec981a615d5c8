"""
Token bucket rate limiter for the Congress.gov API.

Allows short bursts up to the bucket capacity while keeping the long-term
request rate under the hourly quota. Tokens refill lazily on every access;
no background task drives the refill itself.

Usage:
    limiter = TokenBucketRateLimiter(max_tokens=100, refill_rate_per_hour=1000)
    await limiter.acquire()   # waits until a token is available
    response = await client.get(url)
"""
import asyncio
import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

from legisync.config.settings import settings

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 60 * 60


class RateLimiterError(Exception):
    """Base class for admission failures."""


class RateLimiterTimeoutError(RateLimiterError):
    """No token became available within the caller's timeout."""


class RateLimiterResetError(RateLimiterError):
    """A pending acquire was rejected because the limiter was reset."""


@dataclass
class RateLimiterStats:
    current_tokens: int
    max_tokens: int
    refill_rate_per_hour: float
    requests_this_hour: int
    waiting_requests: int


class _Waiter:
    """A queued acquire with its expiry and dispatch timers."""

    __slots__ = ("future", "expiry", "dispatch")

    def __init__(self, future: asyncio.Future):
        self.future = future
        self.expiry: Optional[asyncio.TimerHandle] = None
        self.dispatch: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        """Cancel both timers."""
        if self.expiry is not None:
            self.expiry.cancel()
            self.expiry = None
        if self.dispatch is not None:
            self.dispatch.cancel()
            self.dispatch = None


class TokenBucketRateLimiter:
    """
    Token bucket with a FIFO queue of waiting acquires.

    Args:
        max_tokens: Bucket capacity (burst size)
        refill_rate_per_hour: Tokens added per hour
        initial_tokens: Starting balance (defaults to max_tokens)
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        max_tokens: int,
        refill_rate_per_hour: float,
        initial_tokens: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if refill_rate_per_hour <= 0:
            raise ValueError("refill_rate_per_hour must be positive")

        self.max_tokens = max_tokens
        self.refill_rate_per_hour = refill_rate_per_hour
        self._refill_rate_per_ms = refill_rate_per_hour / (SECONDS_PER_HOUR * 1000)
        self._clock = clock

        start = initial_tokens if initial_tokens is not None else max_tokens
        self._tokens = float(min(max(start, 0), max_tokens))
        self._last_refill = clock()
        self._requests_this_hour = 0
        self._hour_started = self._last_refill
        self._waiters: Deque[_Waiter] = deque()

    def _refill(self) -> None:
        now = self._clock()

        if now - self._hour_started >= SECONDS_PER_HOUR:
            self._requests_this_hour = 0
            self._hour_started = now

        elapsed_ms = max(now - self._last_refill, 0) * 1000
        self._tokens = min(self.max_tokens, self._tokens + elapsed_ms * self._refill_rate_per_ms)
        self._last_refill = now

    def _consume(self) -> None:
        self._tokens -= 1
        self._requests_this_hour += 1

    def _wait_time(self, tokens_wanted: float = 1) -> float:
        """Seconds until `tokens_wanted` tokens are available, rounded up to whole ms."""
        tokens_needed = tokens_wanted - self._tokens
        if tokens_needed <= 0:
            return 0.0
        return math.ceil(tokens_needed / self._refill_rate_per_ms) / 1000

    def try_acquire(self) -> bool:
        """
        Consume a token if one is available right now.

        Returns:
            True if a token was consumed
        """
        self._refill()
        if self._tokens >= 1 and not self._waiters:
            self._consume()
            return True
        return False

    async def acquire(self, timeout: float = 60.0) -> None:
        """
        Wait for a token.

        Waiters are served strictly in arrival order.

        Args:
            timeout: Maximum seconds to wait

        Raises:
            RateLimiterTimeoutError: If the wait would exceed, or did exceed, the timeout
            RateLimiterResetError: If reset() was called while waiting
        """
        self._refill()

        if self._tokens >= 1 and not self._waiters:
            self._consume()
            return

        # Everyone already queued is served first
        wait_time = self._wait_time(len(self._waiters) + 1)
        if wait_time > timeout:
            raise RateLimiterTimeoutError(
                f"Rate limit exceeded. Wait time ({wait_time:.3f}s) exceeds timeout ({timeout:.3f}s)"
            )

        logger.debug(f"Rate limiter: waiting {wait_time:.3f}s for token")

        loop = asyncio.get_running_loop()
        waiter = _Waiter(loop.create_future())
        waiter.expiry = loop.call_later(timeout, self._expire, waiter, timeout)
        waiter.dispatch = loop.call_later(wait_time, self._drain)
        self._waiters.append(waiter)

        try:
            await waiter.future
        except asyncio.CancelledError:
            self._discard(waiter)
            raise

    def _expire(self, waiter: _Waiter, timeout: float) -> None:
        self._discard(waiter)
        if not waiter.future.done():
            waiter.future.set_exception(
                RateLimiterTimeoutError(f"Rate limiter timeout after {timeout:.3f}s")
            )

    def _discard(self, waiter: _Waiter) -> None:
        waiter.cancel()
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass

    def _drain(self) -> None:
        """Hand out available tokens to waiters in FIFO order."""
        self._refill()

        while self._waiters and self._tokens >= 1:
            waiter = self._waiters.popleft()
            waiter.cancel()
            if waiter.future.done():
                continue
            self._consume()
            waiter.future.set_result(None)

        if self._waiters:
            # Make sure the new head is woken when its token is due
            head = self._waiters[0]
            if head.dispatch is not None:
                head.dispatch.cancel()
            head.dispatch = asyncio.get_running_loop().call_later(self._wait_time(), self._drain)

    def get_stats(self) -> RateLimiterStats:
        """Current limiter statistics; the token count is floored."""
        self._refill()
        return RateLimiterStats(
            current_tokens=math.floor(self._tokens),
            max_tokens=self.max_tokens,
            refill_rate_per_hour=self.refill_rate_per_hour,
            requests_this_hour=self._requests_this_hour,
            waiting_requests=len(self._waiters),
        )

    def reset(self) -> None:
        """Refill the bucket and reject every pending acquire."""
        now = self._clock()
        self._tokens = float(self.max_tokens)
        self._last_refill = now
        self._requests_this_hour = 0
        self._hour_started = now

        waiters, self._waiters = self._waiters, deque()
        for waiter in waiters:
            waiter.cancel()
            if not waiter.future.done():
                waiter.future.set_exception(RateLimiterResetError("Rate limiter reset"))


# Process-wide default for the Congress.gov host
_congress_api_limiter: Optional[TokenBucketRateLimiter] = None


def get_congress_api_limiter() -> TokenBucketRateLimiter:
    """Get or create the shared Congress.gov rate limiter."""
    global _congress_api_limiter
    if _congress_api_limiter is None:
        _congress_api_limiter = TokenBucketRateLimiter(
            max_tokens=settings.CONGRESS_GOV_BURST_CAPACITY,
            refill_rate_per_hour=settings.CONGRESS_GOV_RATE_LIMIT,
        )
    return _congress_api_limiter


def reset_congress_api_limiter() -> None:
    """Reset and drop the shared limiter (mainly for tests)."""
    global _congress_api_limiter
    if _congress_api_limiter is not None:
        _congress_api_limiter.reset()
    _congress_api_limiter = None
