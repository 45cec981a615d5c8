"""
Ingester for federal bills from Congress.gov API.

Bills are synced last: detail records reference committees and sponsors
that must already exist. Pages are requested oldest update first so an
interrupted incremental sync can resume from the last success time.

With fetch_details, every stored bill is enriched with its summary,
sponsor, subjects, actions, cosponsors and text versions.
"""
from datetime import datetime
from typing import List, Optional, Tuple, TypeVar

from pydantic import BaseModel

from legisync.database.repository import EntityStore
from legisync.ingestion.base import BaseIngester, to_document
from legisync.ingestion.congress_gov import Page
from legisync.ingestion.schemas import BillListItem
from legisync.ingestion.transformers import (
    transform_bill_action,
    transform_bill_detail,
    transform_bill_list_item,
    transform_cosponsor,
    transform_text_version,
)
from legisync.models import Bill, DetailStats

M = TypeVar("M", bound=BaseModel)


class CongressBillsIngester(BaseIngester[Bill]):
    """
    Ingest bills for one Congress.

    Args:
        congress: Congress number (e.g., 119)
        from_date: Only bills updated since this time (incremental sync)
        bill_type: Optional type filter ("hr", "s", ...)
    """

    entity_name = "bills"
    store_name = "bills"
    update_fields = (
        "title",
        "status",
        "latest_action_date",
        "latest_action_text",
        "last_synced_at",
    )

    def __init__(
        self,
        *args,
        congress: int,
        from_date: Optional[datetime] = None,
        bill_type: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.congress = congress
        self.from_date = from_date
        self.bill_type = bill_type

        self.actions_stats = DetailStats()
        self.cosponsors_stats = DetailStats()
        self.text_versions_stats = DetailStats()

    async def fetch_page(self, offset: int, limit: int) -> Page[BillListItem]:
        return await self.client.get_bills(
            self.congress,
            bill_type=self.bill_type,
            from_datetime=self.from_date,
            sort="updateDate+asc",
            limit=limit,
            offset=offset,
        )

    def transform(self, raw: BillListItem) -> Bill:
        return transform_bill_list_item(raw)

    def describe(self, raw: BillListItem) -> str:
        return f"{raw.type.value}-{raw.number}-{raw.congress}"

    async def after_upsert(self, records: List[Bill]) -> None:
        if not self.fetch_details:
            return

        for bill in records:
            await self.sync_bill_details(bill)

    # ------------------------------------------------------------------------
    # Detail enrichment
    # ------------------------------------------------------------------------

    async def sync_bill_details(self, bill: Bill) -> None:
        """
        Enrich one bill. Failures are logged and never stop the bill loop.
        """
        key = (bill.congress, bill.bill_type.value, bill.number)

        try:
            detail = await self.client.get_bill_detail(*key)
            if not self.dry_run:
                await self.store.update(bill.id, to_document(transform_bill_detail(detail)))

            actions = [a async for a in self.client.list_all_bill_actions(*key)]
            self.actions_stats.processed += len(actions)
            await self._upsert_children(
                self.stores.bill_actions,
                [transform_bill_action(a, bill.id) for a in actions],
                self.actions_stats,
                update_fields=(),
            )

            cosponsors = [c async for c in self.client.list_all_bill_cosponsors(*key)]
            known = await self.stores.legislators.find_many_by_ids(
                [c.bioguide_id for c in cosponsors]
            )
            self.cosponsors_stats.processed += len(cosponsors)
            await self._upsert_children(
                self.stores.cosponsors,
                [transform_cosponsor(c, bill.id) for c in cosponsors if c.bioguide_id in known],
                self.cosponsors_stats,
                update_fields=("cosponsor_date",),
            )

            versions = await self.client.get_bill_text_versions(*key)
            self.text_versions_stats.processed += len(versions)
            text_versions = [transform_text_version(v, bill.id) for v in versions]
            await self._upsert_children(
                self.stores.text_versions,
                [v for v in text_versions if v is not None],
                self.text_versions_stats,
                update_fields=("text_url", "published_date"),
            )

        except Exception as e:
            self.logger.error(f"Error syncing details for {bill.id}: {e}")

    async def _upsert_children(
        self,
        store: EntityStore,
        records: List[M],
        stats: DetailStats,
        update_fields: Tuple[str, ...],
    ) -> None:
        """Create new sub-records; refresh update_fields on existing ones."""
        if self.dry_run or not records:
            return

        existing = await store.find_many_by_ids([r.id for r in records])
        for record in records:
            if record.id in existing:
                if update_fields:
                    await store.update(record.id, to_document(record, include=update_fields))
            else:
                await store.create(to_document(record))
                existing[record.id] = record
                stats.created += 1
