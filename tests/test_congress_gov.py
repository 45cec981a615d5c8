"""Tests for the Congress.gov API client, against a mocked transport."""
from datetime import datetime

import httpx
import pytest

from legisync.ingestion.congress_gov import (
    CongressApiError,
    CongressGovClient,
    MalformedResponseError,
    RateLimitedError,
)
from legisync.ingestion.rate_limiter import TokenBucketRateLimiter
from legisync.ingestion.retry import RetryExhaustedError
from legisync.models import BillType
from tests.conftest import (
    bill_payload,
    committee_payload,
    make_client,
    member_payload,
    offset_of,
    page_response,
)


class TestRequests:
    """Query construction and envelope parsing."""

    @pytest.mark.asyncio
    async def test_bill_list_query(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return page_response("bills", [bill_payload(1), bill_payload(2)], has_next=True)

        client = make_client(handler)
        page = await client.get_bills(
            119,
            bill_type="HR",
            from_datetime=datetime(2025, 1, 1),
            sort="updateDate+asc",
            limit=2,
            offset=4,
        )

        request = seen[0]
        assert request.url.path == "/v3/bill/119/hr"
        params = request.url.params
        assert params["format"] == "json"
        assert params["api_key"] == "test-key"
        assert params["limit"] == "2"
        assert params["offset"] == "4"
        assert params["fromDateTime"] == "2025-01-01T00:00:00Z"
        assert params["sort"] == "updateDate+asc"
        assert "toDateTime" not in params

        assert [b.number for b in page.items] == [1, 2]
        assert page.items[0].type == BillType.HR
        assert page.next_offset == 6

    @pytest.mark.asyncio
    async def test_last_page_has_no_next_offset(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return page_response("committees", [committee_payload("hsag00")], has_next=False)

        page = await make_client(handler).get_committees(limit=20, offset=40)
        assert page.next_offset is None
        assert page.items[0].system_code == "hsag00"

    @pytest.mark.asyncio
    async def test_boolean_params(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return page_response("members", [member_payload("S000001")], has_next=False)

        await make_client(handler).get_members(current_member=True)
        assert seen[0].url.params["currentMember"] == "true"

    @pytest.mark.asyncio
    async def test_list_all_follows_pages(self) -> None:
        offsets = []

        def handler(request: httpx.Request) -> httpx.Response:
            offset = offset_of(request)
            offsets.append(offset)
            items = [bill_payload(offset + 1), bill_payload(offset + 2)]
            return page_response("bills", items, has_next=offset < 4)

        client = make_client(handler)
        numbers = [bill.number async for bill in client.list_all_bills(119, limit=2)]

        assert offsets == [0, 2, 4]
        assert numbers == [1, 2, 3, 4, 5, 6]

    @pytest.mark.asyncio
    async def test_list_all_bill_actions_follows_pages(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            offset = offset_of(request)
            actions = [
                {"actionDate": "2025-01-03", "text": f"Action {offset + 1}"},
                {"actionDate": "2025-01-04", "text": f"Action {offset + 2}"},
            ]
            return page_response("actions", actions, has_next=offset == 0)

        client = make_client(handler)
        texts = [a.text async for a in client.list_all_bill_actions(119, "HR", 1, limit=2)]

        assert seen[0].url.path == "/v3/bill/119/hr/1/actions"
        assert [offset_of(r) for r in seen] == [0, 2]
        assert texts == ["Action 1", "Action 2", "Action 3", "Action 4"]

    @pytest.mark.asyncio
    async def test_detail_endpoints(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path.endswith("/text"):
                return httpx.Response(200, json={"textVersions": [
                    {"date": "2025-01-03T05:00:00Z", "type": "Introduced in House",
                     "formats": [{"type": "PDF", "url": "https://www.congress.gov/119/bills/hr1/BILLS-119hr1ih.pdf"}]},
                ]})
            if path.startswith("/v3/member/"):
                return httpx.Response(200, json={"member": {
                    "bioguideId": "S000001", "currentMember": True, "firstName": "John", "lastName": "Smith",
                }})
            return httpx.Response(200, json={"bill": {
                "congress": 119, "type": "HR", "number": "1", "title": "Test",
                "introducedDate": "2025-01-03", "updateDate": "2025-01-10",
            }})

        client = make_client(handler)
        detail = await client.get_bill_detail(119, "hr", 1)
        assert detail.introduced_date == "2025-01-03"

        versions = await client.get_bill_text_versions(119, "hr", 1)
        assert versions[0].formats[0].type == "PDF"

        member = await client.get_member_detail("S000001")
        assert member.current_member is True


class TestErrors:
    """Error classification and retry integration."""

    @pytest.mark.asyncio
    async def test_404_is_typed_and_not_retried(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, json={"error": "Not found"})

        client = make_client(handler, max_retries=3)
        with pytest.raises(CongressApiError) as exc_info:
            await client.get_bills(119, offset=500)

        assert exc_info.value.status_code == 404
        assert exc_info.value.endpoint == "/bill/119"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_until_exhausted(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, text="Internal error")

        limiter = TokenBucketRateLimiter(max_tokens=100, refill_rate_per_hour=1000)
        client = make_client(handler, max_retries=2, rate_limiter=limiter)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await client.get_committees()

        assert len(calls) == 3
        assert exc_info.value.last_error.status_code == 500
        # One token per attempt
        assert limiter.get_stats().requests_this_hour == 3

    @pytest.mark.asyncio
    async def test_rate_limited_carries_retry_after(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "0"}, text="slow down")

        with pytest.raises(RateLimitedError) as exc_info:
            await make_client(handler).get_members()

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 0.0

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429, headers={"Retry-After": "0"})
            return page_response("members", [member_payload("S000001")], has_next=False)

        page = await make_client(handler, max_retries=2).get_members()
        assert len(calls) == 2
        assert page.items[0].bioguide_id == "S000001"

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(MalformedResponseError):
            await make_client(handler, max_retries=3).get_committees()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_schema_mismatch(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"bills": [{"congress": 119}]})

        with pytest.raises(MalformedResponseError) as exc_info:
            await make_client(handler).get_bills(119)
        assert exc_info.value.endpoint == "/bill/119"

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        def ok(request: httpx.Request) -> httpx.Response:
            return page_response("bills", [bill_payload(1)], has_next=False)

        def down(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        assert await make_client(ok).health_check(119) is True
        assert await make_client(down).health_check(119) is False


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_external_http_client_left_open(self) -> None:
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        async with CongressGovClient(api_key="k", http_client=http):
            pass
        assert http.is_closed is False
        await http.aclose()

    @pytest.mark.asyncio
    async def test_rate_limiter_stats_exposed(self) -> None:
        limiter = TokenBucketRateLimiter(max_tokens=7, refill_rate_per_hour=1000)
        client = make_client(lambda r: httpx.Response(200, json={}), rate_limiter=limiter)
        assert client.get_rate_limiter_stats().max_tokens == 7
