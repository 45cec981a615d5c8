"""
Congress.gov API v3 client.

Every request takes a token from the shared rate limiter, runs through the
retry executor and is validated against a response schema before anything
else sees it.

API docs: https://api.congress.gov/

Usage:
    async with CongressGovClient() as client:
        async for bill in client.list_all_bills(119):
            print(bill.title)
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Generic, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from legisync.config.constants import CURRENT_CONGRESS, MAX_PAGE_SIZE
from legisync.config.settings import settings
from legisync.ingestion.rate_limiter import (
    RateLimiterStats,
    TokenBucketRateLimiter,
    get_congress_api_limiter,
)
from legisync.ingestion.retry import RetryPolicy, parse_retry_after, with_retry
from legisync.ingestion.schemas import (
    BillActionItem,
    BillActionsResponse,
    BillCosponsorItem,
    BillCosponsorsResponse,
    BillDetail,
    BillDetailResponse,
    BillListItem,
    BillListResponse,
    BillTextVersionItem,
    BillTextVersionsResponse,
    CommitteeListItem,
    CommitteeListResponse,
    MemberDetail,
    MemberDetailResponse,
    MemberListItem,
    MemberListResponse,
    Pagination,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S", bound=BaseModel)

DEFAULT_PAGE_LIMIT = 20


# ============================================================================
# Errors
# ============================================================================

class CongressApiError(Exception):
    """Non-success response from Congress.gov."""

    def __init__(
        self,
        message: str,
        status_code: int,
        endpoint: str,
        body: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body
        self.retry_after = retry_after


class RateLimitedError(CongressApiError):
    """HTTP 429. `retry_after` holds the server's requested delay in seconds."""


class MalformedResponseError(CongressApiError):
    """Body was not JSON or did not match the expected schema."""


# ============================================================================
# Pagination
# ============================================================================

@dataclass
class Page(Generic[T]):
    """One page of results; next_offset is None on the last page."""
    items: List[T]
    next_offset: Optional[int]


def _next_offset(pagination: Optional[Pagination], offset: int, limit: int) -> Optional[int]:
    if pagination is not None and pagination.next:
        return offset + limit
    return None


def _format_datetime(value: datetime) -> str:
    """Congress.gov expects YYYY-MM-DDTHH:MM:SSZ."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


async def _paginate(
    fetch_page: Callable[[int, int], Awaitable[Page[T]]],
    limit: int,
) -> AsyncGenerator[T, None]:
    offset = 0
    while True:
        page = await fetch_page(offset, limit)
        for item in page.items:
            yield item
        if page.next_offset is None or not page.items:
            break
        offset = page.next_offset


# ============================================================================
# Client
# ============================================================================

class CongressGovClient:
    """
    Rate-limited, retrying client for Congress.gov.

    Args:
        api_key: Congress.gov API key (defaults to settings)
        base_url: API root (defaults to settings)
        rate_limiter: Shared token bucket (defaults to the process-wide limiter)
        retry_policy: Retry configuration (defaults to settings)
        http_client: Pre-built httpx.AsyncClient; not closed by this client
        timeout: Per-request timeout in seconds
        acquire_timeout: Max seconds to wait for a rate limiter token
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        acquire_timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.CONGRESS_GOV_API_KEY
        self.base_url = (base_url or settings.CONGRESS_GOV_BASE_URL).rstrip("/")
        self.rate_limiter = rate_limiter or get_congress_api_limiter()
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=settings.RETRY_MAX_RETRIES,
            base_delay=settings.RETRY_BASE_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
            backoff_multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
            max_retry_after=settings.RETRY_MAX_RETRY_AFTER,
        )
        self.acquire_timeout = (
            acquire_timeout if acquire_timeout is not None else settings.RATE_LIMIT_ACQUIRE_TIMEOUT
        )

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.CONGRESS_GOV_TIMEOUT,
            headers={"Accept": "application/json"},
        )

        if not self.api_key:
            logger.warning("CONGRESS_GOV_API_KEY not set; requests will likely be rejected")

    async def __aenter__(self) -> "CongressGovClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    # ------------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------------

    async def _request(
        self,
        endpoint: str,
        schema: Type[S],
        params: Optional[Dict[str, Any]] = None,
    ) -> S:
        """
        GET an endpoint and validate the body.

        A token is taken for every attempt, retries included.
        """
        query: Dict[str, Any] = {"format": "json"}
        if self.api_key:
            query["api_key"] = self.api_key
        for key, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, datetime):
                value = _format_datetime(value)
            query[key] = value

        async def attempt() -> S:
            await self.rate_limiter.acquire(self.acquire_timeout)
            logger.debug(f"Congress API request: {endpoint}")
            response = await self._http.get(f"{self.base_url}{endpoint}", params=query)
            return self._parse_response(response, endpoint, schema)

        def on_retry(attempt_number: int, error: BaseException, delay: float) -> None:
            logger.warning(
                f"Retrying {endpoint} (attempt {attempt_number}) in {delay:.2f}s: {error}"
            )

        return await with_retry(attempt, self.retry_policy, on_retry=on_retry)

    @staticmethod
    def _parse_response(response: httpx.Response, endpoint: str, schema: Type[S]) -> S:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))

        if response.status_code == 429:
            raise RateLimitedError(
                f"Rate limited on {endpoint}. Retry after {retry_after if retry_after is not None else 'unknown'}s",
                429,
                endpoint,
                body=response.text,
                retry_after=retry_after,
            )

        if not response.is_success:
            raise CongressApiError(
                f"API error {response.status_code} {response.reason_phrase} on {endpoint}",
                response.status_code,
                endpoint,
                body=response.text,
                retry_after=retry_after,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid JSON from {endpoint}: {e}",
                response.status_code,
                endpoint,
                body=response.text[:500],
            ) from e

        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Unexpected response shape from {endpoint}: {e.error_count()} validation errors",
                response.status_code,
                endpoint,
                body=response.text[:500],
            ) from e

    # ------------------------------------------------------------------------
    # Bills
    # ------------------------------------------------------------------------

    async def get_bills(
        self,
        congress: int,
        bill_type: Optional[str] = None,
        from_datetime: Optional[datetime] = None,
        to_datetime: Optional[datetime] = None,
        sort: Optional[str] = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0,
    ) -> Page[BillListItem]:
        """
        List bills for a Congress.

        Args:
            congress: Congress number (e.g., 119)
            bill_type: Optional type filter ("hr", "s", ...)
            from_datetime: Only bills updated since this time
            to_datetime: Only bills updated before this time
            sort: "updateDate+asc" or "updateDate+desc"
        """
        endpoint = f"/bill/{congress}"
        if bill_type:
            endpoint += f"/{bill_type.lower()}"

        response = await self._request(
            endpoint,
            BillListResponse,
            {
                "limit": limit,
                "offset": offset,
                "fromDateTime": from_datetime,
                "toDateTime": to_datetime,
                "sort": sort,
            },
        )
        return Page(response.bills, _next_offset(response.pagination, offset, limit))

    def list_all_bills(
        self,
        congress: int,
        bill_type: Optional[str] = None,
        from_datetime: Optional[datetime] = None,
        to_datetime: Optional[datetime] = None,
        sort: Optional[str] = None,
        limit: int = MAX_PAGE_SIZE,
    ) -> AsyncGenerator[BillListItem, None]:
        """Iterate every bill matching the filter, page by page."""
        return _paginate(
            lambda offset, page_limit: self.get_bills(
                congress, bill_type, from_datetime, to_datetime, sort, page_limit, offset
            ),
            limit,
        )

    async def get_bill_detail(self, congress: int, bill_type: str, number: int) -> BillDetail:
        response = await self._request(
            f"/bill/{congress}/{bill_type.lower()}/{number}", BillDetailResponse
        )
        return response.bill

    async def get_bill_actions(
        self,
        congress: int,
        bill_type: str,
        number: int,
        limit: int = MAX_PAGE_SIZE,
        offset: int = 0,
    ) -> Page[BillActionItem]:
        response = await self._request(
            f"/bill/{congress}/{bill_type.lower()}/{number}/actions",
            BillActionsResponse,
            {"limit": limit, "offset": offset},
        )
        return Page(response.actions, _next_offset(response.pagination, offset, limit))

    def list_all_bill_actions(
        self, congress: int, bill_type: str, number: int, limit: int = MAX_PAGE_SIZE
    ) -> AsyncGenerator[BillActionItem, None]:
        return _paginate(
            lambda offset, page_limit: self.get_bill_actions(
                congress, bill_type, number, page_limit, offset
            ),
            limit,
        )

    async def get_bill_cosponsors(
        self,
        congress: int,
        bill_type: str,
        number: int,
        limit: int = MAX_PAGE_SIZE,
        offset: int = 0,
    ) -> Page[BillCosponsorItem]:
        response = await self._request(
            f"/bill/{congress}/{bill_type.lower()}/{number}/cosponsors",
            BillCosponsorsResponse,
            {"limit": limit, "offset": offset},
        )
        return Page(response.cosponsors, _next_offset(response.pagination, offset, limit))

    def list_all_bill_cosponsors(
        self, congress: int, bill_type: str, number: int, limit: int = MAX_PAGE_SIZE
    ) -> AsyncGenerator[BillCosponsorItem, None]:
        return _paginate(
            lambda offset, page_limit: self.get_bill_cosponsors(
                congress, bill_type, number, page_limit, offset
            ),
            limit,
        )

    async def get_bill_text_versions(
        self, congress: int, bill_type: str, number: int
    ) -> List[BillTextVersionItem]:
        response = await self._request(
            f"/bill/{congress}/{bill_type.lower()}/{number}/text", BillTextVersionsResponse
        )
        return response.text_versions

    # ------------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------------

    async def get_members(
        self,
        current_member: Optional[bool] = None,
        from_datetime: Optional[datetime] = None,
        to_datetime: Optional[datetime] = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0,
    ) -> Page[MemberListItem]:
        """List members of Congress, optionally only those currently serving."""
        response = await self._request(
            "/member",
            MemberListResponse,
            {
                "limit": limit,
                "offset": offset,
                "currentMember": current_member,
                "fromDateTime": from_datetime,
                "toDateTime": to_datetime,
            },
        )
        return Page(response.members, _next_offset(response.pagination, offset, limit))

    def list_all_members(
        self,
        current_member: Optional[bool] = None,
        from_datetime: Optional[datetime] = None,
        to_datetime: Optional[datetime] = None,
        limit: int = MAX_PAGE_SIZE,
    ) -> AsyncGenerator[MemberListItem, None]:
        return _paginate(
            lambda offset, page_limit: self.get_members(
                current_member, from_datetime, to_datetime, page_limit, offset
            ),
            limit,
        )

    async def get_member_detail(self, bioguide_id: str) -> MemberDetail:
        response = await self._request(f"/member/{bioguide_id}", MemberDetailResponse)
        return response.member

    # ------------------------------------------------------------------------
    # Committees
    # ------------------------------------------------------------------------

    async def get_committees(
        self, limit: int = DEFAULT_PAGE_LIMIT, offset: int = 0
    ) -> Page[CommitteeListItem]:
        response = await self._request(
            "/committee", CommitteeListResponse, {"limit": limit, "offset": offset}
        )
        return Page(response.committees, _next_offset(response.pagination, offset, limit))

    def list_all_committees(self, limit: int = MAX_PAGE_SIZE) -> AsyncGenerator[CommitteeListItem, None]:
        return _paginate(
            lambda offset, page_limit: self.get_committees(page_limit, offset),
            limit,
        )

    # ------------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------------

    def get_rate_limiter_stats(self) -> RateLimiterStats:
        return self.rate_limiter.get_stats()

    async def health_check(self, congress: int = CURRENT_CONGRESS) -> bool:
        """
        Check that the API answers.

        Returns:
            True if a one-item bill listing succeeds; never raises
        """
        try:
            await self.get_bills(congress, limit=1)
            return True
        except Exception as e:
            logger.warning(f"Congress.gov health check failed: {e}")
            return False


# Process-wide default client
_congress_client: Optional[CongressGovClient] = None


def get_congress_client() -> CongressGovClient:
    """Get or create the shared Congress.gov client."""
    global _congress_client
    if _congress_client is None:
        _congress_client = CongressGovClient()
    return _congress_client


async def close_congress_client() -> None:
    """Close and drop the shared client."""
    global _congress_client
    if _congress_client is not None:
        await _congress_client.aclose()
        _congress_client = None
