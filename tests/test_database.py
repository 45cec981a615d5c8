"""Tests for the MongoDB store adapter and index setup, using fake collections."""
from typing import Any, Dict, List

import pytest

from legisync.config.constants import (
    COLLECTION_BILL_ACTIONS,
    COLLECTION_BILL_COSPONSORS,
    COLLECTION_BILLS,
    COLLECTION_LEGISLATORS,
)
from legisync.database.indexes import create_all_indexes
from legisync.database.repository import MongoEntityStore, SyncStores


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = list(documents)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Dict[str, Any]:
        if not self._documents:
            raise StopAsyncIteration
        return self._documents.pop(0)


class FakeCollection:
    """The slice of AsyncIOMotorCollection the store and index setup use."""

    def __init__(self):
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.indexes: List[Dict[str, Any]] = []
        self.insert_many_kwargs: Dict[str, Any] = {}

    async def find_one(self, query: Dict[str, Any]):
        document = self.documents.get(query["_id"])
        return dict(document) if document else None

    def find(self, query: Dict[str, Any]) -> FakeCursor:
        ids = query["_id"]["$in"]
        return FakeCursor([dict(self.documents[i]) for i in ids if i in self.documents])

    async def insert_one(self, document: Dict[str, Any]) -> None:
        self.documents[document["_id"]] = dict(document)

    async def insert_many(self, documents: List[Dict[str, Any]], **kwargs) -> None:
        self.insert_many_kwargs = kwargs
        for document in documents:
            self.documents[document["_id"]] = dict(document)

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]) -> None:
        self.documents[query["_id"]].update(update["$set"])

    async def create_index(self, keys, **kwargs) -> str:
        self.indexes.append({"keys": keys, **kwargs})
        return kwargs["name"]


class FakeDatabase(dict):
    def __missing__(self, name: str) -> FakeCollection:
        collection = FakeCollection()
        self[name] = collection
        return collection


class TestMongoEntityStore:
    @pytest.mark.asyncio
    async def test_id_maps_to_underscore_id(self) -> None:
        collection = FakeCollection()
        store = MongoEntityStore(collection)

        await store.create({"id": "hr-1-119", "title": "A bill"})

        assert collection.documents == {"hr-1-119": {"_id": "hr-1-119", "title": "A bill"}}
        assert await store.find_by_id("hr-1-119") == {"id": "hr-1-119", "title": "A bill"}
        assert await store.find_by_id("hr-2-119") is None

    @pytest.mark.asyncio
    async def test_create_does_not_mutate_input(self) -> None:
        record = {"id": "S000001", "state": "UT"}
        await MongoEntityStore(FakeCollection()).create(record)
        assert record == {"id": "S000001", "state": "UT"}

    @pytest.mark.asyncio
    async def test_update_sets_fields_without_id(self) -> None:
        collection = FakeCollection()
        store = MongoEntityStore(collection)
        await store.create({"id": "hsag00", "name": "Agriculture"})

        await store.update("hsag00", {"id": "hsag00", "name": "Agriculture Committee"})

        assert collection.documents["hsag00"] == {"_id": "hsag00", "name": "Agriculture Committee"}

    @pytest.mark.asyncio
    async def test_find_many_returns_only_existing(self) -> None:
        store = MongoEntityStore(FakeCollection())
        await store.create_many([{"id": "a"}, {"id": "b"}])

        found = await store.find_many_by_ids(["a", "b", "c"])

        assert set(found) == {"a", "b"}
        assert found["a"] == {"id": "a"}
        assert await store.find_many_by_ids([]) == {}

    @pytest.mark.asyncio
    async def test_create_many_is_unordered(self) -> None:
        collection = FakeCollection()
        await MongoEntityStore(collection).create_many([{"id": "a"}])
        assert collection.insert_many_kwargs == {"ordered": False}

    def test_stores_from_database(self) -> None:
        db = FakeDatabase()
        stores = SyncStores.from_database(db)

        assert stores.bills.collection is db[COLLECTION_BILLS]
        assert stores.legislators.collection is db[COLLECTION_LEGISLATORS]
        assert stores.cosponsors.collection is db[COLLECTION_BILL_COSPONSORS]


class TestIndexes:
    @pytest.mark.asyncio
    async def test_child_collections_indexed_by_bill(self) -> None:
        db = FakeDatabase()

        await create_all_indexes(db)

        for name in (COLLECTION_BILL_ACTIONS, COLLECTION_BILL_COSPONSORS):
            assert "idx_bill_id" in [i["name"] for i in db[name].indexes]

    @pytest.mark.asyncio
    async def test_index_names_unique_per_collection(self) -> None:
        db = FakeDatabase()

        await create_all_indexes(db)

        for collection in db.values():
            names = [i["name"] for i in collection.indexes]
            assert len(names) == len(set(names))
        assert "idx_sponsor" in [i["name"] for i in db[COLLECTION_BILLS].indexes]
