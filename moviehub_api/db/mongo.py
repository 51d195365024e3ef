import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from moviehub_api.core.config import settings

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None


def client_options() -> dict:
    """Pool and timeout settings shared by the app and the scripts."""
    timeout = settings.mongo_timeout_ms
    return {
        "appname": settings.app_name,
        "tz_aware": True,
        "maxPoolSize": settings.mongo_pool_size,
        "minPoolSize": 0,
        "serverSelectionTimeoutMS": timeout,
        "connectTimeoutMS": timeout,
        "socketTimeoutMS": timeout + 2000,
        "retryWrites": True,
    }


async def get_client() -> AsyncIOMotorClient:
    """Process-wide Motor client, created on first use."""
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(settings.mongo_dsn, **client_options())
        try:
            await _client.admin.command("ping")
        except PyMongoError as e:
            # the app still starts; requests fail with 500 until Mongo is up
            logger.warning("mongo_ping_failed", extra={"err": str(e)})
    return _client


async def get_mongo_db() -> AsyncIOMotorDatabase:
    client = await get_client()
    return client[settings.mongo_db]


async def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
