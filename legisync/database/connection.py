"""
MongoDB connection management for the sync pipeline.

One lazily created motor client per process. Call ping() before a run so a
bad URI fails fast instead of on the first upsert.
"""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from legisync.config.settings import settings

logger = logging.getLogger(__name__)

_async_client: AsyncIOMotorClient | None = None


def get_async_client() -> AsyncIOMotorClient:
    """Get or create the shared motor client."""
    global _async_client
    if _async_client is None:
        _async_client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=int(settings.MONGODB_TIMEOUT * 1000),
            tz_aware=False,
        )
        logger.debug(f"Created MongoDB client for database {settings.MONGODB_DATABASE}")
    return _async_client


def get_async_database(name: str | None = None) -> AsyncIOMotorDatabase:
    """The configured database, or `name` when given."""
    return get_async_client()[name or settings.MONGODB_DATABASE]


async def close_async_client() -> None:
    global _async_client
    if _async_client is not None:
        _async_client.close()
        _async_client = None


async def ping() -> bool:
    """
    Check that MongoDB is reachable.

    Returns:
        True when the server answers; connection errors propagate.
    """
    result = await get_async_client().admin.command("ping")
    return result.get("ok") == 1.0
