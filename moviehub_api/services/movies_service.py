"""Movie CRUD the vote core depends on: existence, listing, cascade."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from pymongo.errors import PyMongoError

from moviehub_api.core.errors import (
    Forbidden,
    MovieNotFound,
    StorageUnavailable,
)
from moviehub_api.models.movies import (
    AdminStatsResponse,
    LedgerStats,
    MovieCreateRequest,
    MovieDeleteResponse,
    MovieDetailResponse,
    MovieItem,
    MovieListResponse,
)
from moviehub_api.services.repositories.ballots_repo import BallotsRepo
from moviehub_api.services.repositories.movies_repo import MoviesRepo
from moviehub_api.services.votes_service import to_movie_vote_item

logger = logging.getLogger(__name__)

ADMIN_ROLE = 'admin'


def to_item(doc: dict) -> MovieItem:
    return MovieItem(
        movie_id=str(doc['_id']),
        title=doc['title'],
        description=doc['description'],
        added_by=str(doc['added_by']),
        upvotes=int(doc.get('upvotes', 0)),
        downvotes=int(doc.get('downvotes', 0)),
        score=int(doc.get('score', 0)),
        created_at=doc['created_at'],
    )


class MoviesService:
    def __init__(
        self,
        movies: MoviesRepo,
        ballots: BallotsRepo,
        *,
        use_transactions: bool = True,
    ) -> None:
        self.movies = movies
        self.ballots = ballots
        self.use_transactions = use_transactions

    @asynccontextmanager
    async def _txn(self):
        if not self.use_transactions:
            yield None
            return
        async with await self.movies.client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def list_movies(
            self, limit: int = 20, offset: int = 0) -> MovieListResponse:
        """Movies ordered by score, newest first on ties."""
        try:
            docs = await self.movies.list_by_score(limit, offset)
            total = await self.movies.count()
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_movie_list_error: {error}') from error
        return MovieListResponse(items=[to_item(d) for d in docs],
                                 total=total)

    async def get_movie(
        self,
        movie_id: str,
        votes_limit: int = 50,
    ) -> Optional[MovieDetailResponse]:
        """The movie with its newest ballots and their voters' names."""
        try:
            doc = await self.movies.get_by_id(movie_id)
            if doc is None:
                return None
            votes = await self.ballots.list_by_movie(movie_id, votes_limit, 0)
            total = await self.ballots.count_by_movie(movie_id)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_movie_get_error: {error}') from error
        return MovieDetailResponse(
            movie=to_item(doc),
            votes=[to_movie_vote_item(v) for v in votes],
            votes_total=total,
        )

    async def stats(
            self, top: int = 10, recent: int = 5) -> AdminStatsResponse:
        try:
            total_movies = await self.movies.count()
            total_votes = await self.ballots.count()
            top_docs = await self.movies.list_by_score(top, 0)
            recent_docs = await self.movies.list_recent(recent)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_movie_stats_error: {error}') from error
        return AdminStatsResponse(
            stats=LedgerStats(total_movies=total_movies,
                              total_votes=total_votes),
            top_movies=[to_item(d) for d in top_docs],
            recent_movies=[to_item(d) for d in recent_docs],
        )

    async def create_movie(
            self, user_id: str, data: MovieCreateRequest) -> MovieItem:
        try:
            doc = await self.movies.insert(
                title=data.title,
                description=data.description,
                added_by=user_id,
            )
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_movie_create_error: {error}') from error
        logger.info('movie_created', extra={'movie_id': str(doc['_id'])})
        return to_item(doc)

    async def delete_movie(
        self,
        user_id: str,
        role: str,
        movie_id: str,
    ) -> MovieDeleteResponse:
        """Delete a movie and its ballots. Admins or the creator only."""
        try:
            doc = await self.movies.get_by_id(movie_id)
            if doc is None:
                raise MovieNotFound()
            if role != ADMIN_ROLE and str(doc['added_by']) != user_id:
                raise Forbidden()

            async with self._txn() as session:
                votes_deleted = await self.ballots.delete_by_movie(
                    movie_id, session=session)
                await self.movies.delete(movie_id, session=session)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_movie_delete_error: {error}') from error

        logger.info('movie_deleted',
                    extra={'movie_id': movie_id,
                           'votes_deleted': votes_deleted})
        return MovieDeleteResponse(message='Movie deleted successfully',
                                   votes_deleted=votes_deleted)
