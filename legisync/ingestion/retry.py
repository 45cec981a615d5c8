"""
Retry with exponential backoff and full jitter.

Wraps any async operation; errors are classified as retryable or fatal by
the policy's predicate. Fatal errors propagate on the first attempt.

Usage:
    policy = RetryPolicy(max_retries=3, base_delay=1.0)
    data = await with_retry(lambda: client.get(url), policy)
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from legisync.config.constants import RETRYABLE_STATUS_CODES
from legisync.ingestion.rate_limiter import RateLimiterError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Lowercased substrings of transient network failures
TRANSIENT_ERROR_MARKERS = (
    "network",
    "timeout",
    "timed out",
    "connection reset",
    "connection refused",
    "econnreset",
    "econnrefused",
    "enotfound",
    "name resolution",
    "socket hang up",
)


class RetryExhaustedError(Exception):
    """Every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Operation failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def is_retryable_error(error: BaseException) -> bool:
    """
    Default retry predicate.

    Retries transport failures, errors carrying a transient HTTP status
    (408, 429, 5xx gateway errors) and errors whose message looks like a
    transient network failure. Admission timeouts are never retried here.
    """
    if isinstance(error, RateLimiterError):
        return False

    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError)):
        return True

    status_code = getattr(error, "status_code", None)
    if status_code in RETRYABLE_STATUS_CODES:
        return True

    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration. Delays are in seconds."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    use_jitter: bool = True
    # Upper bound on a server-requested Retry-After delay
    max_retry_after: float = 300.0
    is_retryable: Callable[[BaseException], bool] = is_retryable_error


DEFAULT_RETRY_POLICY = RetryPolicy()


def calculate_backoff_delay(attempt: int, policy: RetryPolicy) -> float:
    """
    Delay before retrying after the given (0-indexed) attempt.

    Without jitter: min(base * multiplier ** attempt, max_delay).
    With full jitter: uniform in [0, that value].
    """
    capped = min(policy.base_delay * policy.backoff_multiplier ** attempt, policy.max_delay)
    if policy.use_jitter:
        return random.uniform(0, capped)
    return capped


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header into seconds.

    Accepts delta-seconds ("120") or an HTTP date. Past dates give 0.

    Returns:
        Seconds to wait, or None if missing or unparseable
    """
    if not value:
        return None

    value = value.strip()
    try:
        return max(0.0, float(int(value)))
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    *,
    on_retry: Optional[Callable[[int, BaseException, float], Any]] = None,
) -> T:
    """
    Run `operation`, retrying retryable failures with backoff.

    An error with a non-None `retry_after` attribute (seconds) overrides the
    computed backoff for that retry, capped at policy.max_retry_after.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Retry configuration (defaults to DEFAULT_RETRY_POLICY)
        on_retry: Called as on_retry(attempt, error, delay) before each sleep;
                  its exceptions are logged and ignored

    Raises:
        RetryExhaustedError: After max_retries + 1 failed attempts
        Exception: The original error if it is not retryable
    """
    policy = policy or DEFAULT_RETRY_POLICY
    total_attempts = policy.max_retries + 1
    last_error: Optional[BaseException] = None

    for attempt in range(total_attempts):
        try:
            return await operation()
        except Exception as e:
            last_error = e

            if not policy.is_retryable(e):
                raise

            if attempt == policy.max_retries:
                break

            retry_after = getattr(e, "retry_after", None)
            if retry_after is not None:
                delay = min(retry_after, policy.max_retry_after)
            else:
                delay = calculate_backoff_delay(attempt, policy)

            logger.warning(
                f"Retrying after error (attempt {attempt + 1}/{policy.max_retries}, "
                f"delay {delay:.2f}s): {e}"
            )

            if on_retry is not None:
                try:
                    on_retry(attempt + 1, e, delay)
                except Exception as hook_error:
                    logger.warning(f"on_retry hook failed: {hook_error}")

            await asyncio.sleep(delay)

    raise RetryExhaustedError(total_attempts, last_error)
