"""
Sync orchestrator.

Runs the entity ingesters in dependency order (committees, legislators,
bills), tracks run state and optionally re-runs on a fixed interval.

Only one run may be active at a time; a second trigger returns a failed
result immediately instead of waiting. Nothing raised by the pipeline
escapes run_sync: run-level failures come back in SyncResult.errors and
per-record failures in SyncResult.item_errors.

Usage:
    scheduler = SyncScheduler(stores, client)
    result = await scheduler.run_sync(SyncOptions(congress=119))
"""
import asyncio
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Set

from legisync.config.settings import settings
from legisync.database.repository import SyncStores
from legisync.ingestion.base import BaseIngester, ErrorBudget, SyncAbortedError
from legisync.ingestion.committees import CommitteesIngester
from legisync.ingestion.congress_bills import CongressBillsIngester
from legisync.ingestion.congress_gov import CongressGovClient, get_congress_client
from legisync.ingestion.congress_members import CongressMembersIngester
from legisync.models import SyncError, SyncOptions, SyncResult, SyncState, SyncStats

logger = logging.getLogger(__name__)

FIRST_CONGRESS_YEAR = 1789


def congress_start_date(congress: int) -> datetime:
    """Each Congress convenes on January 3 of every odd year."""
    return datetime(FIRST_CONGRESS_YEAR + 2 * (congress - 1), 1, 3)


class SyncScheduler:
    """
    Drives sync runs against one client and one set of stores.

    Args:
        stores: Record stores for every synced entity
        client: Congress.gov client (defaults to the process-wide client)
        batch_size: Default records per upsert batch
        page_size: Default items per API page
        max_consecutive_page_errors: Same-offset failures tolerated before an entity stops
        max_total_errors: Run-wide error budget
        interval: Seconds between periodic runs
    """

    def __init__(
        self,
        stores: SyncStores,
        client: Optional[CongressGovClient] = None,
        batch_size: Optional[int] = None,
        page_size: Optional[int] = None,
        max_consecutive_page_errors: Optional[int] = None,
        max_total_errors: Optional[int] = None,
        interval: Optional[float] = None,
    ):
        self.stores = stores
        self.client = client or get_congress_client()
        self.batch_size = batch_size or settings.SYNC_BATCH_SIZE
        self.page_size = page_size or settings.SYNC_PAGE_SIZE
        self.max_consecutive_page_errors = (
            max_consecutive_page_errors
            if max_consecutive_page_errors is not None
            else settings.SYNC_MAX_CONSECUTIVE_PAGE_ERRORS
        )
        self.max_total_errors = (
            max_total_errors if max_total_errors is not None else settings.SYNC_MAX_TOTAL_ERRORS
        )
        self.interval = interval if interval is not None else settings.SYNC_INTERVAL_SECONDS

        self._state = SyncState()
        self._timer_task: Optional[asyncio.Task] = None
        self._run_tasks: Set[asyncio.Task] = set()

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def start(self, interval: Optional[float] = None, options: Optional[SyncOptions] = None) -> None:
        """
        Run an initial sync, then schedule one every interval.

        Later runs are incremental from the last successful sync.
        """
        if self._timer_task is not None:
            logger.warning("Sync scheduler already running")
            return

        interval = interval if interval is not None else self.interval
        base_options = options or SyncOptions()
        logger.info(f"Starting sync scheduler (interval {interval}s)")

        await self.run_sync(base_options)
        self._timer_task = asyncio.create_task(self._timer_loop(interval, base_options))

    async def _timer_loop(self, interval: float, base_options: SyncOptions) -> None:
        while True:
            await asyncio.sleep(interval)
            options = base_options.model_copy(
                update={"from_date": self._state.last_successful_sync_at or base_options.from_date}
            )
            # Runs are detached so stop() never cancels one mid-flight
            task = asyncio.create_task(self.run_sync(options))
            self._run_tasks.add(task)
            task.add_done_callback(self._run_tasks.discard)

    def stop(self) -> None:
        """Stop scheduling new runs. An in-flight run is left to finish."""
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
            logger.info("Sync scheduler stopped")

    @property
    def is_scheduled(self) -> bool:
        return self._timer_task is not None

    def get_state(self) -> SyncState:
        """Snapshot of the run state."""
        return self._state.model_copy()

    # ========================================================================
    # Main sync logic
    # ========================================================================

    async def run_sync(self, options: Optional[SyncOptions] = None) -> SyncResult:
        """
        Run one sync.

        Returns:
            SyncResult; success is True unless the run aborted or an entity
            stopped on repeated page failures. Per-record failures only
            show up in the stats and item_errors.
        """
        if self._state.is_running:
            logger.warning("Sync already in progress, skipping")
            return SyncResult(
                success=False,
                errors=[SyncError(id="sync", error="Sync already in progress")],
            )

        options = options or SyncOptions()
        self._state.is_running = True
        self._state.started_at = datetime.utcnow()
        started = time.monotonic()

        budget = ErrorBudget(self.max_total_errors)
        ingesters = self._build_ingesters(options, budget)
        run_errors: List[SyncError] = []

        logger.info(
            f"Starting sync for Congress {options.congress}: "
            f"{', '.join(ingesters) or 'nothing to do'}"
            f"{' (dry run)' if options.dry_run else ''}"
        )

        try:
            await self.ensure_congress(options.congress, options.dry_run)
            for ingester in ingesters.values():
                await ingester.run()
        except SyncAbortedError as e:
            logger.error(f"Sync aborted by circuit breaker: {e}")
            run_errors.append(SyncError(id="sync", error=str(e)))
        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)
            run_errors.append(SyncError(id="sync", error=str(e)))
        finally:
            self._state.is_running = False

        # Partial stats and errors are kept when an entity was cut short
        stats = SyncStats()
        errors: List[SyncError] = []
        item_errors: List[SyncError] = []
        for entity, ingester in ingesters.items():
            setattr(stats, entity, ingester.stats)
            errors.extend(ingester.errors)
            item_errors.extend(ingester.item_errors)
            if isinstance(ingester, CongressBillsIngester):
                stats.actions = ingester.actions_stats
                stats.cosponsors = ingester.cosponsors_stats
                stats.text_versions = ingester.text_versions_stats
        errors.extend(run_errors)

        success = not errors
        if success:
            self._state.last_successful_sync_at = datetime.utcnow()
            self._state.error_count = 0
            self._state.last_error = None
        else:
            self._state.error_count += 1
            self._state.last_error = errors[-1].error

        totals = stats.entity_totals()
        result = SyncResult(
            success=success,
            records_processed=totals.processed,
            records_created=totals.created,
            records_updated=totals.updated,
            errors=errors,
            item_errors=item_errors,
            duration=time.monotonic() - started,
            stats=stats,
        )

        logger.info(
            f"Sync {'completed' if success else 'failed'} in {result.duration:.1f}s. "
            f"Processed: {result.records_processed}, "
            f"Created: {result.records_created}, "
            f"Updated: {result.records_updated}, "
            f"Errors: {len(errors)}, "
            f"Record errors: {len(item_errors)}"
        )
        return result

    def _build_ingesters(self, options: SyncOptions, budget: ErrorBudget) -> Dict[str, BaseIngester]:
        """Ingesters for the requested entity types, in dependency order."""
        common = dict(
            client=self.client,
            stores=self.stores,
            error_budget=budget,
            batch_size=options.batch_size or self.batch_size,
            page_size=options.page_size or self.page_size,
            max_consecutive_page_errors=self.max_consecutive_page_errors,
            dry_run=options.dry_run,
            fetch_details=options.fetch_details,
        )

        ingesters: Dict[str, BaseIngester] = {}
        if "committees" in options.entity_types:
            ingesters["committees"] = CommitteesIngester(**common)
        if "legislators" in options.entity_types:
            ingesters["legislators"] = CongressMembersIngester(from_date=options.from_date, **common)
        if "bills" in options.entity_types:
            ingesters["bills"] = CongressBillsIngester(
                congress=options.congress, from_date=options.from_date, **common
            )
        return ingesters

    async def ensure_congress(self, congress: int, dry_run: bool = False) -> None:
        """Create the Congress record if it doesn't exist yet."""
        if await self.stores.congresses.find_by_id(str(congress)):
            return
        if dry_run:
            return

        await self.stores.congresses.create(
            {"id": str(congress), "number": congress, "start_date": congress_start_date(congress)}
        )
        logger.info(f"Created Congress record for the {congress}th Congress")


# Process-wide default scheduler
_sync_scheduler: Optional[SyncScheduler] = None


def get_sync_scheduler(stores: SyncStores) -> SyncScheduler:
    """Get or create the shared scheduler."""
    global _sync_scheduler
    if _sync_scheduler is None:
        _sync_scheduler = SyncScheduler(stores)
    return _sync_scheduler


def reset_sync_scheduler() -> None:
    """Stop and drop the shared scheduler."""
    global _sync_scheduler
    if _sync_scheduler is not None:
        _sync_scheduler.stop()
    _sync_scheduler = None
