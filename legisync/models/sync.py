"""
Sync run models.

State, options and results exchanged between the scheduler, the
ingesters and whoever triggers a run.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from legisync.config.constants import CURRENT_CONGRESS, SYNC_ENTITY_ORDER


class EntityStats(BaseModel):
    """Counters for one entity type within a run."""
    processed: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0


class DetailStats(BaseModel):
    """Counters for bill sub-resources fetched during detail enrichment."""
    processed: int = 0
    created: int = 0


class SyncStats(BaseModel):
    committees: EntityStats = Field(default_factory=EntityStats)
    legislators: EntityStats = Field(default_factory=EntityStats)
    bills: EntityStats = Field(default_factory=EntityStats)
    actions: DetailStats = Field(default_factory=DetailStats)
    cosponsors: DetailStats = Field(default_factory=DetailStats)
    text_versions: DetailStats = Field(default_factory=DetailStats)

    def entity_totals(self) -> EntityStats:
        """Sum of the three primary entity types."""
        total = EntityStats()
        for stats in (self.committees, self.legislators, self.bills):
            total.processed += stats.processed
            total.created += stats.created
            total.updated += stats.updated
            total.errors += stats.errors
        return total


class SyncError(BaseModel):
    id: str
    error: str


class SyncOptions(BaseModel):
    """
    Options for a single sync run.

    Unset numeric options fall back to the scheduler's configured defaults.
    """
    congress: int = CURRENT_CONGRESS
    from_date: Optional[datetime] = None
    entity_types: List[str] = Field(default_factory=lambda: list(SYNC_ENTITY_ORDER))
    dry_run: bool = False
    batch_size: Optional[int] = None
    page_size: Optional[int] = None
    fetch_details: bool = False


class SyncState(BaseModel):
    """Run-level state owned by one SyncScheduler."""
    started_at: Optional[datetime] = None
    last_successful_sync_at: Optional[datetime] = None
    is_running: bool = False
    error_count: int = 0
    last_error: Optional[str] = None


class SyncResult(BaseModel):
    success: bool
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    errors: List[SyncError] = Field(default_factory=list)
    # Per-record failures; these do not affect success
    item_errors: List[SyncError] = Field(default_factory=list)
    duration: float = 0.0
    stats: SyncStats = Field(default_factory=SyncStats)
