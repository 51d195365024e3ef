import logging

from fastapi import FastAPI

from contextlib import asynccontextmanager
from pymongo.errors import PyMongoError

from moviehub_api.db.mongo import close_client, get_mongo_db

from moviehub_api.core.logger import setup_json_logging, shutdown_logging
from moviehub_api.core.sentry import init_sentry
from moviehub_api.core.config import settings
from moviehub_api.core.middleware import RequestContextMiddleware

from moviehub_api.api.http_utils import register_error_handlers
from moviehub_api.api.v1.votes import router as votes_router
from moviehub_api.api.v1.movies import router as movies_router
from moviehub_api.api.v1.admin import router as admin_router
from moviehub_api.api.v1.debug import include_debug_routes
from moviehub_api.services.repositories.ballots_repo import BallotsRepo
from moviehub_api.services.repositories.movies_repo import MoviesRepo

logger = logging.getLogger(__name__)


async def ensure_indexes() -> None:
    """The unique (user_id, movie_id) index is what keeps ballots single."""
    db = await get_mongo_db()
    try:
        await BallotsRepo(db).ensure_indexes()
        await MoviesRepo(db).ensure_indexes()
    except PyMongoError as e:
        # scripts/create_indexes.py can be run once Mongo is back
        logger.error("mongo_ensure_indexes_failed", extra={"err": str(e)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_json_logging(service=settings.app_name, level=settings.log_level)
    init_sentry(settings.sentry_dsn, environment=settings.env,
                traces_sample_rate=settings.sentry_traces_sample_rate,
                service=settings.app_name)

    await ensure_indexes()

    try:
        yield
    finally:
        await close_client()
        shutdown_logging()


app = FastAPI(title="MovieHub Votes Service", lifespan=lifespan)

app.add_middleware(RequestContextMiddleware)
register_error_handlers(app)

# access records come from RequestContextMiddleware
logging.getLogger("uvicorn.access").setLevel("WARNING")

include_debug_routes(app)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(votes_router)
app.include_router(movies_router)
app.include_router(admin_router)
