"""Ingestion module - Congress.gov client, ingesters and the sync scheduler."""

from legisync.ingestion.congress_gov import (
    CongressApiError,
    CongressGovClient,
    MalformedResponseError,
    Page,
    RateLimitedError,
)
from legisync.ingestion.rate_limiter import (
    RateLimiterError,
    RateLimiterResetError,
    RateLimiterTimeoutError,
    TokenBucketRateLimiter,
)
from legisync.ingestion.retry import RetryExhaustedError, RetryPolicy, with_retry
from legisync.ingestion.base import ErrorBudget, SyncAbortedError
from legisync.ingestion.sync_scheduler import SyncScheduler

__all__ = [
    "CongressApiError",
    "CongressGovClient",
    "MalformedResponseError",
    "Page",
    "RateLimitedError",
    "RateLimiterError",
    "RateLimiterResetError",
    "RateLimiterTimeoutError",
    "TokenBucketRateLimiter",
    "RetryExhaustedError",
    "RetryPolicy",
    "with_retry",
    "ErrorBudget",
    "SyncAbortedError",
    "SyncScheduler",
]
