"""
Secondary indexes for the synced collections.

Records are keyed by "_id", so lookups by id need nothing extra. These
indexes cover the child-record joins and the usual read-side filters.

Usage:
    from legisync.database.indexes import create_all_indexes
    await create_all_indexes(db)
"""
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from legisync.config.constants import (
    COLLECTION_BILL_ACTIONS,
    COLLECTION_BILL_COSPONSORS,
    COLLECTION_BILL_TEXT_VERSIONS,
    COLLECTION_BILLS,
    COLLECTION_COMMITTEES,
    COLLECTION_LEGISLATORS,
)

logger = logging.getLogger(__name__)


async def create_legislator_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[COLLECTION_LEGISLATORS]
    await collection.create_index(
        [("state", ASCENDING), ("chamber", ASCENDING), ("in_office", ASCENDING)],
        name="idx_state_chamber_office",
    )
    await collection.create_index(
        [("last_name", ASCENDING), ("first_name", ASCENDING)],
        name="idx_name_sort",
    )


async def create_committee_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[COLLECTION_COMMITTEES]
    await collection.create_index(
        [("parent_id", ASCENDING)],
        name="idx_parent_id",
        sparse=True,
    )
    await collection.create_index([("chamber", ASCENDING)], name="idx_chamber")


async def create_bill_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[COLLECTION_BILLS]
    await collection.create_index(
        [("congress", ASCENDING), ("bill_type", ASCENDING), ("number", ASCENDING)],
        name="idx_congress_type_number",
    )
    await collection.create_index(
        [("latest_action_date", DESCENDING)],
        name="idx_latest_action_date",
    )
    await collection.create_index(
        [("sponsor_bioguide_id", ASCENDING)],
        name="idx_sponsor",
        sparse=True,
    )
    await collection.create_index([("status", ASCENDING)], name="idx_status")


async def create_bill_child_indexes(db: AsyncIOMotorDatabase) -> None:
    """Actions, cosponsors and text versions are all read per bill."""
    for name in (COLLECTION_BILL_ACTIONS, COLLECTION_BILL_COSPONSORS, COLLECTION_BILL_TEXT_VERSIONS):
        await db[name].create_index([("bill_id", ASCENDING)], name="idx_bill_id")

    await db[COLLECTION_BILL_COSPONSORS].create_index(
        [("legislator_id", ASCENDING)],
        name="idx_legislator_id",
    )


async def create_all_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create every index; existing indexes with the same spec are left alone."""
    logger.info("Creating indexes...")
    await create_legislator_indexes(db)
    await create_committee_indexes(db)
    await create_bill_indexes(db)
    await create_bill_child_indexes(db)
    logger.info("Indexes ready")
