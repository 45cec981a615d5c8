"""
Ingester for congressional committees from Congress.gov API.

Committees are synced first: bills reference them through referrals.
Subcommittees point at their parent, so the full set is collected and
written parents first.
"""
from typing import List

from legisync.ingestion.base import BaseIngester
from legisync.ingestion.congress_gov import Page
from legisync.ingestion.schemas import CommitteeListItem
from legisync.ingestion.transformers import sort_committees_parents_first, transform_committee
from legisync.models import Committee


class CommitteesIngester(BaseIngester[Committee]):
    """Ingest all House, Senate and Joint committees."""

    entity_name = "committees"
    store_name = "committees"
    update_fields = ("name", "chamber", "type")
    buffer_all = True

    async def fetch_page(self, offset: int, limit: int) -> Page[CommitteeListItem]:
        return await self.client.get_committees(limit=limit, offset=offset)

    def transform(self, raw: CommitteeListItem) -> Committee:
        return transform_committee(raw)

    def describe(self, raw: CommitteeListItem) -> str:
        return raw.system_code

    async def prepare_batch(self, records: List[Committee]) -> List[Committee]:
        """
        Order parents first and drop links to parents we don't have.

        A parent is known if it is already stored or earlier in this batch.
        """
        ordered = sort_committees_parents_first(records)
        parent_ids = {c.parent_id for c in ordered if c.parent_id}
        stored = await self.store.find_many_by_ids(parent_ids) if parent_ids else {}

        seen = set(stored)
        prepared = []
        for committee in ordered:
            if committee.parent_id and committee.parent_id not in seen:
                self.logger.warning(
                    f"Parent {committee.parent_id} of {committee.id} not found; storing without parent"
                )
                committee = committee.model_copy(update={"parent_id": None})
            seen.add(committee.id)
            prepared.append(committee)
        return prepared
