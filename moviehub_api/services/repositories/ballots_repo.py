"""Mongo repository for ballots (one vote per user per movie)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

COLLECTION = 'votes'

INDEXES = [
    # one ballot per (user, movie); building it fails on duplicates,
    # see scripts/dedup_votes.py
    IndexModel([('user_id', ASCENDING), ('movie_id', ASCENDING)],
               unique=True, name='votes_user_movie'),
    IndexModel([('movie_id', ASCENDING), ('created_at', DESCENDING)],
               name='votes_movie_created_desc'),
    IndexModel([('user_id', ASCENDING), ('created_at', DESCENDING)],
               name='votes_user_created_desc'),
]


class BallotsRepo:
    """Ballot CRUD; uniqueness of (user_id, movie_id) lives in the index."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.col = db[COLLECTION]

    @property
    def client(self):
        """Expose motor client to open transactions in services."""
        return self.col.database.client

    async def ensure_indexes(self) -> None:
        await self.col.create_indexes(INDEXES)

    async def find(
        self,
        user_id: str,
        movie_id: str,
        *,
        session=None,
    ) -> Optional[Dict[str, Any]]:
        """Current ballot for (user, movie) or None."""
        return await self.col.find_one(
            {'user_id': ObjectId(user_id), 'movie_id': ObjectId(movie_id)},
            session=session,
        )

    async def insert(
        self,
        user_id: str,
        movie_id: str,
        direction: str,
        *,
        session=None,
    ) -> str:
        """Plain insert; a second ballot raises DuplicateKeyError."""
        now = datetime.now(timezone.utc)
        result = await self.col.insert_one(
            {
                'user_id': ObjectId(user_id),
                'movie_id': ObjectId(movie_id),
                'direction': direction,
                'created_at': now,
                'updated_at': now,
            },
            session=session,
        )
        return str(result.inserted_id)

    async def update_direction(
        self,
        ballot_id: ObjectId,
        expected: str,
        direction: str,
        *,
        session=None,
    ) -> bool:
        """Flip direction only if the ballot still holds ``expected``."""
        result = await self.col.update_one(
            {'_id': ballot_id, 'direction': expected},
            {'$set': {
                'direction': direction,
                'updated_at': datetime.now(timezone.utc),
            }},
            session=session,
        )
        return result.matched_count == 1

    async def delete(
        self,
        ballot_id: ObjectId,
        expected: str,
        *,
        session=None,
    ) -> bool:
        """Delete only if the ballot still holds ``expected``."""
        result = await self.col.delete_one(
            {'_id': ballot_id, 'direction': expected},
            session=session,
        )
        return result.deleted_count == 1

    async def delete_by_movie(self, movie_id: str, *, session=None) -> int:
        """Cascade hook for movie deletion."""
        result = await self.col.delete_many(
            {'movie_id': ObjectId(movie_id)},
            session=session,
        )
        return result.deleted_count

    async def tally(
        self,
        movie_id: str,
        *,
        session=None,
    ) -> Dict[str, int]:
        """Count live ballots per direction for a movie."""
        pipeline = [
            {'$match': {'movie_id': ObjectId(movie_id)}},
            {'$group': {'_id': '$direction', 'count': {'$sum': 1}}},
        ]
        counts = {'up': 0, 'down': 0}
        async for doc in self.col.aggregate(pipeline, session=session):
            if doc['_id'] in counts:
                counts[doc['_id']] = int(doc['count'])
        return counts

    async def list_by_movie(
        self,
        movie_id: str,
        limit: int,
        offset: int,
    ) -> List[Dict[str, Any]]:
        """Movie ballots, newest first, with the voter's display name."""
        pipeline = [
            {'$match': {'movie_id': ObjectId(movie_id)}},
            {'$sort': {'created_at': -1, '_id': -1}},
            {'$skip': offset},
            {'$limit': limit},
            {'$lookup': {
                'from': 'users',
                'localField': 'user_id',
                'foreignField': '_id',
                'as': 'user',
                'pipeline': [{'$project': {'_id': 0, 'name': 1}}],
            }},
            {'$set': {'user_name': {'$first': '$user.name'}}},
            {'$unset': 'user'},
        ]
        return [doc async for doc in self.col.aggregate(pipeline)]

    async def list_by_user(
        self,
        user_id: str,
        limit: int,
        offset: int,
    ) -> List[Dict[str, Any]]:
        """User ballots, newest first, with the movie title."""
        pipeline = [
            {'$match': {'user_id': ObjectId(user_id)}},
            {'$sort': {'created_at': -1, '_id': -1}},
            {'$skip': offset},
            {'$limit': limit},
            {'$lookup': {
                'from': 'movies',
                'localField': 'movie_id',
                'foreignField': '_id',
                'as': 'movie',
                'pipeline': [{'$project': {'_id': 0, 'title': 1}}],
            }},
            {'$set': {'movie_title': {'$first': '$movie.title'}}},
            {'$unset': 'movie'},
        ]
        return [doc async for doc in self.col.aggregate(pipeline)]

    async def count_by_movie(self, movie_id: str) -> int:
        return await self.col.count_documents(
            {'movie_id': ObjectId(movie_id)})

    async def count_by_user(self, user_id: str) -> int:
        return await self.col.count_documents(
            {'user_id': ObjectId(user_id)})

    async def count(self) -> int:
        return await self.col.count_documents({})
