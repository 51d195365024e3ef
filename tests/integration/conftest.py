import os

import pytest
from asgi_lifespan import LifespanManager
from httpx import AsyncClient, ASGITransport
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from moviehub_api.core.config import settings
from moviehub_api.db.mongo import get_mongo_db
from moviehub_api.main import app

TEST_DSN = os.environ.get(
    "MONGO_TEST_DSN",
    "mongodb://mongo:27017/moviehub_test?replicaSet=rs0",
)


def _mongo_reachable(dsn: str) -> bool:
    ping_client = MongoClient(dsn, serverSelectionTimeoutMS=500)
    try:
        ping_client.admin.command("ping")
        return True
    except PyMongoError:
        return False
    finally:
        ping_client.close()


@pytest.fixture(scope="session")
def mongo_settings():
    if not _mongo_reachable(TEST_DSN):
        pytest.skip(f"mongo is not reachable at {TEST_DSN}")
    settings.mongo_dsn = TEST_DSN
    settings.mongo_db = TEST_DSN.split("/")[-1].split("?")[0]
    settings.sentry_dsn = ""
    return settings


@pytest.fixture
async def db(mongo_settings):
    """Run the app lifespan (indexes included) on a clean database."""
    async with LifespanManager(app):
        database = await get_mongo_db()
        for name in await database.list_collection_names():
            await database[name].delete_many({})
        yield database


@pytest.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport,
                           base_url="http://test") as ac:
        yield ac
