"""
Base ingester: paginate, transform, batch, upsert.

Every entity ingester shares the same failure policy:

- A 404 at any offset ends pagination cleanly.
- Any other page failure retries the same offset; after too many
  consecutive failures the entity stops without advancing.
- Per-item transform/upsert failures are counted and skipped; they
  do not fail the run.
- Every failure is charged to a run-wide ErrorBudget, which aborts the
  whole run once exhausted.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

from pydantic import BaseModel

from legisync.config.settings import settings
from legisync.database.repository import EntityStore, SyncStores
from legisync.ingestion.congress_gov import CongressApiError, CongressGovClient, Page
from legisync.models import EntityStats, SyncError

T = TypeVar("T", bound=BaseModel)


class SyncAbortedError(Exception):
    """The run-wide error budget is exhausted."""

    def __init__(self, total_errors: int, limit: int):
        super().__init__(f"Sync aborted: {total_errors} errors exceeds limit of {limit}")
        self.total_errors = total_errors
        self.limit = limit


class ErrorBudget:
    """
    Monotonic error counter shared by every ingester in one run.

    Never resets; exceeding max_total_errors raises SyncAbortedError.
    """

    def __init__(self, max_total_errors: int):
        self.max_total_errors = max_total_errors
        self.total_errors = 0

    def record(self) -> None:
        self.total_errors += 1
        if self.total_errors > self.max_total_errors:
            raise SyncAbortedError(self.total_errors, self.max_total_errors)


def to_document(model: BaseModel, include: Optional[Iterable[str]] = None, exclude_none: bool = False) -> Dict[str, Any]:
    """Dump a model for storage, with enums stored as their values."""
    data = model.model_dump(include=set(include) if include is not None else None, exclude_none=exclude_none)
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}


def is_end_of_data(error: Exception) -> bool:
    return isinstance(error, CongressApiError) and error.status_code == 404


class BaseIngester(ABC, Generic[T]):
    """
    Base class for all Congress.gov entity ingesters.

    Subclasses name their entity and store, fetch one page at a time and
    transform raw items into records.
    """

    # Used in logs and error ids ("bills:offset=40")
    entity_name: str = "records"
    # Attribute of SyncStores holding this entity's records
    store_name: str = ""
    # Fields refreshed when the record already exists
    update_fields: Tuple[str, ...] = ()
    # Hold every record until pagination ends, then write once
    buffer_all: bool = False

    def __init__(
        self,
        client: CongressGovClient,
        stores: SyncStores,
        error_budget: ErrorBudget,
        batch_size: Optional[int] = None,
        page_size: Optional[int] = None,
        max_consecutive_page_errors: Optional[int] = None,
        dry_run: bool = False,
        fetch_details: bool = False,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.client = client
        self.stores = stores
        self.store: EntityStore = getattr(stores, self.store_name)
        self.error_budget = error_budget
        self.batch_size = batch_size or settings.SYNC_BATCH_SIZE
        self.page_size = page_size or settings.SYNC_PAGE_SIZE
        self.max_consecutive_page_errors = (
            max_consecutive_page_errors
            if max_consecutive_page_errors is not None
            else settings.SYNC_MAX_CONSECUTIVE_PAGE_ERRORS
        )
        self.dry_run = dry_run
        self.fetch_details = fetch_details

        self.stats = EntityStats()
        # Entity-level failures (same-offset stops); these fail the run
        self.errors: List[SyncError] = []
        # Per-record failures; counted and logged, the run carries on
        self.item_errors: List[SyncError] = []

    @abstractmethod
    async def fetch_page(self, offset: int, limit: int) -> Page[Any]:
        """Fetch one page of raw (schema-validated) items."""

    @abstractmethod
    def transform(self, raw: Any) -> T:
        """Transform one raw item into a record."""

    def describe(self, raw: Any) -> str:
        """Identifier for a raw item, used in error reports."""
        return self.entity_name

    async def prepare_batch(self, records: List[T]) -> List[T]:
        """Hook to reorder or adjust a batch before it is written."""
        return records

    async def after_upsert(self, records: List[T]) -> None:
        """Hook run after each batch is written (detail enrichment)."""

    # ------------------------------------------------------------------------
    # Error accounting
    # ------------------------------------------------------------------------

    def record_item_error(self, item_id: str, error: Exception) -> None:
        self.stats.errors += 1
        self.item_errors.append(SyncError(id=item_id, error=str(error)))
        self.logger.error(f"Error processing {item_id}: {error}")
        self.error_budget.record()

    # ------------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------------

    async def paginate(self) -> AsyncGenerator[Any, None]:
        """
        Yield raw items page by page.

        The offset only advances after a successful fetch, so a failing
        page is retried, never skipped.
        """
        offset = 0
        consecutive_errors = 0

        while True:
            try:
                page = await self.fetch_page(offset, self.page_size)
            except Exception as e:
                if is_end_of_data(e):
                    self.logger.info(f"No more {self.entity_name} at offset {offset} (404)")
                    return

                consecutive_errors += 1
                self.error_budget.record()

                if consecutive_errors > self.max_consecutive_page_errors:
                    self.logger.error(
                        f"Stopping {self.entity_name} sync at offset {offset} after "
                        f"{consecutive_errors} consecutive failures; resume from this offset manually"
                    )
                    self.errors.append(
                        SyncError(id=f"{self.entity_name}:offset={offset}", error=str(e))
                    )
                    return

                self.logger.warning(
                    f"Failed to fetch {self.entity_name} at offset {offset} "
                    f"(attempt {consecutive_errors}/{self.max_consecutive_page_errors}): {e}"
                )
                continue

            consecutive_errors = 0
            self.logger.info(f"Fetched {len(page.items)} {self.entity_name} at offset {offset}")

            for item in page.items:
                yield item

            if page.next_offset is None or not page.items:
                return
            offset = page.next_offset

    # ------------------------------------------------------------------------
    # Upsert
    # ------------------------------------------------------------------------

    async def upsert_batch(self, records: List[T]) -> None:
        """
        Create new records and refresh existing ones.

        Keyed by record id, so writing the same record twice leaves one copy.
        """
        if self.dry_run or not records:
            return

        existing = await self.store.find_many_by_ids([record.id for record in records])

        for record in records:
            try:
                if record.id in existing:
                    await self.store.update(
                        record.id, to_document(record, include=self.update_fields)
                    )
                    self.stats.updated += 1
                else:
                    document = to_document(record)
                    await self.store.create(document)
                    existing[record.id] = document
                    self.stats.created += 1
            except Exception as e:
                self.record_item_error(record.id, e)

    async def flush(self, batch: List[T]) -> None:
        records = await self.prepare_batch(batch)
        await self.upsert_batch(records)
        await self.after_upsert(records)

    # ------------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------------

    async def run(self) -> EntityStats:
        """
        Sync every page of this entity.

        Raises:
            SyncAbortedError: When the shared error budget runs out
        """
        self.logger.info(f"Starting {self.__class__.__name__}...")
        started_at = datetime.utcnow()
        batch: List[T] = []

        try:
            async for raw in self.paginate():
                self.stats.processed += 1
                try:
                    batch.append(self.transform(raw))
                except Exception as e:
                    self.record_item_error(self.describe(raw), e)
                    continue

                if not self.buffer_all and len(batch) >= self.batch_size:
                    await self.flush(batch)
                    batch = []

            if batch:
                await self.flush(batch)

        finally:
            duration = datetime.utcnow() - started_at
            self.logger.info(
                f"{self.entity_name.capitalize()} sync complete. "
                f"Processed: {self.stats.processed}, "
                f"Created: {self.stats.created}, "
                f"Updated: {self.stats.updated}, "
                f"Errors: {self.stats.errors}, "
                f"Duration: {duration}"
            )

        return self.stats
