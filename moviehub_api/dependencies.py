import re
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from moviehub_api.core.config import settings
from moviehub_api.core.trace import set_user_id
from moviehub_api.db.mongo import get_mongo_db
from moviehub_api.models.common import OBJECT_ID_PATTERN
from moviehub_api.services.movies_service import MoviesService
from moviehub_api.services.repositories.ballots_repo import BallotsRepo
from moviehub_api.services.repositories.movies_repo import MoviesRepo
from moviehub_api.services.score_ledger import ScoreLedger
from moviehub_api.services.votes_service import VotesService

ROLES = ("user", "admin")


@dataclass(frozen=True)
class CurrentUser:
    """Identity resolved by the upstream auth gateway."""
    id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: str = Header("user", alias="X-User-Role"),
) -> CurrentUser:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required")
    if not re.fullmatch(OBJECT_ID_PATTERN, x_user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-Id")
    role = x_user_role.lower()
    if role not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-Role")
    # lower-case hex so ownership checks compare equal
    user = CurrentUser(id=x_user_id.lower(), role=role)
    set_user_id(user.id)
    return user


async def admin_user(
        user: CurrentUser = Depends(current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required")
    return user


async def get_db() -> AsyncIOMotorDatabase:
    return await get_mongo_db()


async def get_ballots_repo(db=Depends(get_db)) -> BallotsRepo:
    return BallotsRepo(db)


async def get_movies_repo(db=Depends(get_db)) -> MoviesRepo:
    return MoviesRepo(db)


async def get_score_ledger(
        movies: MoviesRepo = Depends(get_movies_repo),
        ballots: BallotsRepo = Depends(get_ballots_repo),
) -> ScoreLedger:
    return ScoreLedger(
        movies,
        ballots,
        use_transactions=settings.mongo_transactions,
        max_attempts=settings.vote_max_attempts,
    )


async def get_votes_service(
        ballots: BallotsRepo = Depends(get_ballots_repo),
        movies: MoviesRepo = Depends(get_movies_repo),
        ledger: ScoreLedger = Depends(get_score_ledger),
) -> VotesService:
    return VotesService(
        ballots,
        movies,
        ledger,
        use_transactions=settings.mongo_transactions,
        max_attempts=settings.vote_max_attempts,
    )


async def get_movies_service(
        movies: MoviesRepo = Depends(get_movies_repo),
        ballots: BallotsRepo = Depends(get_ballots_repo),
) -> MoviesService:
    return MoviesService(
        movies,
        ballots,
        use_transactions=settings.mongo_transactions,
    )
