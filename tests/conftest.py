"""Shared fixtures: in-memory stores, a mocked Congress.gov client and payload builders."""
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import pytest

from legisync.database.repository import SyncStores
from legisync.ingestion.congress_gov import CongressGovClient
from legisync.ingestion.rate_limiter import TokenBucketRateLimiter, reset_congress_api_limiter
from legisync.ingestion.retry import RetryPolicy

BASE_URL = "https://api.congress.test/v3"


class InMemoryStore:
    """EntityStore backed by a dict, keyed by record id."""

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None):
        self.records: Dict[str, Dict[str, Any]] = {r["id"]: dict(r) for r in records or []}
        self.create_calls = 0
        self.update_calls = 0

    async def find_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        record = self.records.get(record_id)
        return dict(record) if record else None

    async def find_many_by_ids(self, record_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        return {i: dict(self.records[i]) for i in record_ids if i in self.records}

    async def create(self, data: Dict[str, Any]) -> None:
        if data["id"] in self.records:
            raise ValueError(f"Duplicate id {data['id']}")
        self.create_calls += 1
        self.records[data["id"]] = dict(data)

    async def create_many(self, records: List[Dict[str, Any]]) -> None:
        for record in records:
            await self.create(record)

    async def update(self, record_id: str, data: Dict[str, Any]) -> None:
        if record_id not in self.records:
            raise KeyError(record_id)
        self.update_calls += 1
        self.records[record_id].update(data)


def make_stores(**seed: List[Dict[str, Any]]) -> SyncStores:
    """SyncStores with one InMemoryStore per entity, optionally pre-seeded."""
    names = ("congresses", "committees", "legislators", "bills", "bill_actions", "cosponsors", "text_versions")
    return SyncStores(**{name: InMemoryStore(seed.get(name)) for name in names})


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    max_retries: int = 0,
    rate_limiter: Optional[TokenBucketRateLimiter] = None,
) -> CongressGovClient:
    """Client wired to an httpx.MockTransport with zero-delay retries."""
    return CongressGovClient(
        api_key="test-key",
        base_url=BASE_URL,
        rate_limiter=rate_limiter or TokenBucketRateLimiter(max_tokens=1000, refill_rate_per_hour=3_600_000),
        retry_policy=RetryPolicy(max_retries=max_retries, base_delay=0.0, max_delay=0.0, use_jitter=False),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def offset_of(request: httpx.Request) -> int:
    return int(request.url.params.get("offset", "0"))


# ============================================================================
# Payload builders (camelCase, as Congress.gov returns them)
# ============================================================================

def bill_payload(
    number: int,
    congress: int = 119,
    bill_type: str = "HR",
    action_text: str = "Referred to the House Committee on Ways and Means.",
) -> Dict[str, Any]:
    return {
        "congress": congress,
        "type": bill_type,
        "number": str(number),
        "originChamber": "House",
        "title": f"Test Bill {number}",
        "latestAction": {"actionDate": "2025-01-10", "text": action_text},
        "updateDate": "2025-01-12T08:30:00Z",
        "url": f"{BASE_URL}/bill/{congress}/{bill_type.lower()}/{number}?format=json",
    }


def member_payload(
    bioguide_id: str,
    name: str = "Smith, John A.",
    party: str = "Democratic",
    chamber: str = "House of Representatives",
    state: str = "Utah",
    district: Optional[int] = 2,
) -> Dict[str, Any]:
    return {
        "bioguideId": bioguide_id,
        "name": name,
        "partyName": party,
        "state": state,
        "district": district,
        "terms": {"item": [{"chamber": chamber, "startYear": 2023}]},
        "updateDate": "2025-01-05T00:00:00Z",
    }


def committee_payload(
    system_code: str,
    name: Optional[str] = None,
    chamber: str = "House",
    committee_type: str = "Standing",
    parent: Optional[str] = None,
) -> Dict[str, Any]:
    payload = {
        "systemCode": system_code,
        "name": name or f"Committee {system_code}",
        "chamber": chamber,
        "committeeTypeCode": committee_type,
    }
    if parent:
        payload["parent"] = {"systemCode": parent, "name": f"Committee {parent}"}
    return payload


def page_response(key: str, items: List[Dict[str, Any]], has_next: bool) -> httpx.Response:
    pagination: Dict[str, Any] = {"count": len(items)}
    if has_next:
        pagination["next"] = f"{BASE_URL}/next"
    return httpx.Response(200, json={key: items, "pagination": pagination})


@pytest.fixture(autouse=True)
def reset_shared_limiter():
    yield
    reset_congress_api_limiter()
