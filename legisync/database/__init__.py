"""Database module - connection management and record stores."""

from legisync.database.connection import (
    get_async_client,
    get_async_database,
    close_async_client,
    ping,
)
from legisync.database.indexes import create_all_indexes
from legisync.database.repository import (
    EntityStore,
    MongoEntityStore,
    SyncStores,
)

__all__ = [
    "get_async_client",
    "get_async_database",
    "close_async_client",
    "ping",
    "create_all_indexes",
    "EntityStore",
    "MongoEntityStore",
    "SyncStores",
]
