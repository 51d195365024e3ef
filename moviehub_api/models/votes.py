from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from moviehub_api.models.common import OBJECT_ID_PATTERN


class VoteDirection(str, Enum):
    up = "up"
    down = "down"


class VoteOutcome(str, Enum):
    added = "added"
    changed = "changed"
    removed = "removed"


class VoteCastRequest(BaseModel):
    movie_id: str = Field(
        ...,
        pattern=OBJECT_ID_PATTERN,
        validation_alias=AliasChoices("movie_id", "movieId"),
    )
    direction: VoteDirection


class VoteCastResponse(BaseModel):
    message: str
    direction: Optional[VoteDirection] = None  # None = vote removed


class VoteResult(BaseModel):
    """What the coordinator did and the movie counters after it."""
    outcome: VoteOutcome
    direction: Optional[VoteDirection]
    movie_id: str
    upvotes: int
    downvotes: int
    score: int


class UserVoteResponse(BaseModel):
    movie_id: str
    user_id: str
    direction: Optional[VoteDirection] = None


class MovieVoteItem(BaseModel):
    vote_id: str
    movie_id: str
    user_id: str
    user_name: Optional[str] = None
    direction: VoteDirection
    created_at: datetime
    updated_at: datetime


class MovieVoteListResponse(BaseModel):
    items: List[MovieVoteItem]
    total: int


class UserVoteItem(BaseModel):
    vote_id: str
    movie_id: str
    user_id: str
    movie_title: Optional[str] = None
    direction: VoteDirection
    created_at: datetime
    updated_at: datetime


class UserVoteListResponse(BaseModel):
    items: List[UserVoteItem]
    total: int
