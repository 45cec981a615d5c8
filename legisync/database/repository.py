"""
Storage collaborator for the sync pipeline.

The ingesters only ever talk to an EntityStore: a keyed record store with
find/create/update. Records are plain dicts carrying an "id" key; the
MongoDB implementation maps it to "_id".
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from legisync.config.constants import (
    COLLECTION_BILL_ACTIONS,
    COLLECTION_BILL_COSPONSORS,
    COLLECTION_BILL_TEXT_VERSIONS,
    COLLECTION_BILLS,
    COLLECTION_COMMITTEES,
    COLLECTION_CONGRESSES,
    COLLECTION_LEGISLATORS,
)


class EntityStore(Protocol):
    """Upsert-by-id record store."""

    async def find_by_id(self, record_id: str) -> Optional[Dict[str, Any]]: ...

    async def find_many_by_ids(self, record_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]: ...

    async def create(self, data: Dict[str, Any]) -> None: ...

    async def create_many(self, records: List[Dict[str, Any]]) -> None: ...

    async def update(self, record_id: str, data: Dict[str, Any]) -> None: ...


class MongoEntityStore:
    """EntityStore backed by one MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    @staticmethod
    def _to_document(data: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(data)
        document["_id"] = document.pop("id")
        return document

    @staticmethod
    def _from_document(document: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(document)
        record["id"] = record.pop("_id")
        return record

    async def find_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        document = await self.collection.find_one({"_id": record_id})
        return self._from_document(document) if document else None

    async def find_many_by_ids(self, record_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = list(record_ids)
        if not ids:
            return {}
        found = {}
        async for document in self.collection.find({"_id": {"$in": ids}}):
            record = self._from_document(document)
            found[record["id"]] = record
        return found

    async def create(self, data: Dict[str, Any]) -> None:
        await self.collection.insert_one(self._to_document(data))

    async def create_many(self, records: List[Dict[str, Any]]) -> None:
        if records:
            await self.collection.insert_many(
                [self._to_document(r) for r in records], ordered=False
            )

    async def update(self, record_id: str, data: Dict[str, Any]) -> None:
        fields = {k: v for k, v in data.items() if k != "id"}
        if fields:
            await self.collection.update_one({"_id": record_id}, {"$set": fields})


@dataclass
class SyncStores:
    """One store per synced entity type."""
    congresses: EntityStore
    committees: EntityStore
    legislators: EntityStore
    bills: EntityStore
    bill_actions: EntityStore
    cosponsors: EntityStore
    text_versions: EntityStore

    @classmethod
    def from_database(cls, db: AsyncIOMotorDatabase) -> "SyncStores":
        return cls(
            congresses=MongoEntityStore(db[COLLECTION_CONGRESSES]),
            committees=MongoEntityStore(db[COLLECTION_COMMITTEES]),
            legislators=MongoEntityStore(db[COLLECTION_LEGISLATORS]),
            bills=MongoEntityStore(db[COLLECTION_BILLS]),
            bill_actions=MongoEntityStore(db[COLLECTION_BILL_ACTIONS]),
            cosponsors=MongoEntityStore(db[COLLECTION_BILL_COSPONSORS]),
            text_versions=MongoEntityStore(db[COLLECTION_BILL_TEXT_VERSIONS]),
        )
