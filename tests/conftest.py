import pytest
from httpx import AsyncClient, ASGITransport

from moviehub_api.core.config import settings
from moviehub_api.dependencies import get_ballots_repo, get_movies_repo
from moviehub_api.main import app
from moviehub_api.services.score_ledger import ScoreLedger
from moviehub_api.services.votes_service import VotesService
from tests.fakes import FakeBallotsRepo, FakeMoviesRepo


@pytest.fixture
def movies_repo() -> FakeMoviesRepo:
    return FakeMoviesRepo()


@pytest.fixture
def users() -> dict:
    """user_id -> display name, what the users collection would hold."""
    return {}


@pytest.fixture
def ballots_repo(movies_repo, users) -> FakeBallotsRepo:
    return FakeBallotsRepo(movies=movies_repo, users=users)


@pytest.fixture
def ledger(movies_repo, ballots_repo) -> ScoreLedger:
    return ScoreLedger(movies_repo, ballots_repo, use_transactions=False)


@pytest.fixture
def votes_service(ballots_repo, movies_repo, ledger) -> VotesService:
    return VotesService(ballots_repo, movies_repo, ledger,
                        use_transactions=False, max_attempts=3)


@pytest.fixture
async def client(monkeypatch, movies_repo, ballots_repo):
    """HTTP client over the real app with in-memory repositories."""
    monkeypatch.setattr(settings, "mongo_transactions", False)
    app.dependency_overrides[get_movies_repo] = lambda: movies_repo
    app.dependency_overrides[get_ballots_repo] = lambda: ballots_repo
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport,
                           base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
