"""Data models module."""

from legisync.models.politician import (
    Chamber,
    Party,
    Legislator,
    LegislatorUpdate,
)

from legisync.models.committee import (
    Committee,
    CommitteeType,
)

from legisync.models.legislation import (
    Bill,
    BillAction,
    BillStatus,
    BillType,
    BillUpdate,
    Cosponsor,
    DataQuality,
    DataSource,
    TextFormat,
    TextVersion,
)

from legisync.models.sync import (
    DetailStats,
    EntityStats,
    SyncError,
    SyncOptions,
    SyncResult,
    SyncState,
    SyncStats,
)

__all__ = [
    # Legislator
    "Chamber",
    "Party",
    "Legislator",
    "LegislatorUpdate",
    # Committee
    "Committee",
    "CommitteeType",
    # Legislation
    "Bill",
    "BillAction",
    "BillStatus",
    "BillType",
    "BillUpdate",
    "Cosponsor",
    "DataQuality",
    "DataSource",
    "TextFormat",
    "TextVersion",
    # Sync
    "DetailStats",
    "EntityStats",
    "SyncError",
    "SyncOptions",
    "SyncResult",
    "SyncState",
    "SyncStats",
]
