from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from moviehub_api.models.votes import MovieVoteItem


class MovieCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=10, max_length=5_000)


class MovieScore(BaseModel):
    movie_id: str
    upvotes: int = 0
    downvotes: int = 0
    score: int = 0


class MovieItem(MovieScore):
    title: str
    description: str
    added_by: str
    created_at: datetime


class MovieListResponse(BaseModel):
    items: List[MovieItem]
    total: int


class MovieDeleteResponse(BaseModel):
    message: str
    votes_deleted: int


class ReconcileResponse(BaseModel):
    checked: int
    repaired: int


class MovieDetailResponse(BaseModel):
    """A movie with its ballots, newest first."""
    movie: MovieItem
    votes: List[MovieVoteItem]
    votes_total: int


class LedgerStats(BaseModel):
    total_movies: int
    total_votes: int


class AdminStatsResponse(BaseModel):
    stats: LedgerStats
    top_movies: List[MovieItem]
    recent_movies: List[MovieItem]
