"""
Ingester for members of Congress from Congress.gov API.

Keeps the legislator collection up-to-date: new members are created,
existing ones get their party, seat and office status refreshed.
With fetch_details, each member's detail record fills in names,
website and term dates.
"""
from datetime import datetime
from typing import List, Optional

from legisync.ingestion.base import BaseIngester, to_document
from legisync.ingestion.congress_gov import Page
from legisync.ingestion.schemas import MemberListItem
from legisync.ingestion.transformers import transform_member_detail, transform_member_list_item
from legisync.models import Legislator


class CongressMembersIngester(BaseIngester[Legislator]):
    """
    Ingest members of Congress.

    Args:
        from_date: Only members updated since this time (incremental sync)
        current_member: Restrict to members currently serving
    """

    entity_name = "legislators"
    store_name = "legislators"
    update_fields = (
        "full_name",
        "party",
        "chamber",
        "state",
        "district",
        "in_office",
        "last_synced_at",
    )

    def __init__(
        self,
        *args,
        from_date: Optional[datetime] = None,
        current_member: Optional[bool] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.from_date = from_date
        self.current_member = current_member

        if self.from_date:
            self.logger.info(f"Incremental sync: members updated since {self.from_date.isoformat()}")

    async def fetch_page(self, offset: int, limit: int) -> Page[MemberListItem]:
        return await self.client.get_members(
            current_member=self.current_member,
            from_datetime=self.from_date,
            limit=limit,
            offset=offset,
        )

    def transform(self, raw: MemberListItem) -> Legislator:
        return transform_member_list_item(raw)

    def describe(self, raw: MemberListItem) -> str:
        return raw.bioguide_id

    async def after_upsert(self, records: List[Legislator]) -> None:
        if not self.fetch_details:
            return

        for legislator in records:
            await self.fetch_member_details(legislator.id)

    async def fetch_member_details(self, bioguide_id: str) -> None:
        """
        Apply the member detail record. Failures are logged and skipped.
        """
        try:
            detail = await self.client.get_member_detail(bioguide_id)
            update = transform_member_detail(detail)
            if not self.dry_run:
                await self.store.update(bioguide_id, to_document(update, exclude_none=True))
        except Exception as e:
            self.logger.warning(f"Could not fetch details for {bioguide_id}: {e}")
