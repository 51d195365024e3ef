"""Mongo repository for movies and their vote counters."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, IndexModel, ReturnDocument

COLLECTION = 'movies'

# listing by score, ties by recency
INDEXES = [
    IndexModel([('score', DESCENDING), ('created_at', DESCENDING)],
               name='movies_score_created_desc'),
]

COUNTERS_PROJECTION = {'_id': 1, 'upvotes': 1, 'downvotes': 1, 'score': 1}


class MoviesRepo:
    """Movie documents; counters are only written through the ledger."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.col = db[COLLECTION]

    @property
    def client(self):
        return self.col.database.client

    async def ensure_indexes(self) -> None:
        await self.col.create_indexes(INDEXES)

    async def exists(self, movie_id: str) -> bool:
        doc = await self.col.find_one(
            {'_id': ObjectId(movie_id)}, {'_id': 1})
        return doc is not None

    async def get_by_id(self, movie_id: str) -> Optional[Dict[str, Any]]:
        return await self.col.find_one({'_id': ObjectId(movie_id)})

    async def get_counters(
        self,
        movie_id: str,
        *,
        session=None,
    ) -> Optional[Dict[str, Any]]:
        return await self.col.find_one(
            {'_id': ObjectId(movie_id)}, COUNTERS_PROJECTION,
            session=session)

    async def list_by_score(
        self,
        limit: int,
        offset: int,
    ) -> List[Dict[str, Any]]:
        """Highest score first, newest first among equals."""
        cursor = (
            self.col.find({})
            .sort([('score', -1), ('created_at', -1)])
            .skip(offset)
            .limit(limit)
        )
        return [doc async for doc in cursor]

    async def count(self) -> int:
        return await self.col.count_documents({})

    async def list_recent(self, limit: int) -> List[Dict[str, Any]]:
        cursor = self.col.find({}).sort([('created_at', -1)]).limit(limit)
        return [doc async for doc in cursor]

    async def iter_ids(self) -> AsyncIterator[str]:
        async for doc in self.col.find({}, {'_id': 1}):
            yield str(doc['_id'])

    async def insert(
        self,
        title: str,
        description: str,
        added_by: str,
    ) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        doc = {
            'title': title,
            'description': description,
            'added_by': ObjectId(added_by),
            'upvotes': 0,
            'downvotes': 0,
            'score': 0,
            'created_at': now,
            'updated_at': now,
        }
        result = await self.col.insert_one(doc)
        doc['_id'] = result.inserted_id
        return doc

    async def delete(self, movie_id: str, *, session=None) -> bool:
        result = await self.col.delete_one(
            {'_id': ObjectId(movie_id)}, session=session)
        return result.deleted_count == 1

    async def apply_counter_delta(
        self,
        movie_id: str,
        up_delta: int,
        down_delta: int,
        *,
        session=None,
    ) -> Optional[Dict[str, Any]]:
        """
        Atomic counter update: add deltas, floor at zero, recompute score.
        Runs as one pipeline update, so concurrent deltas never overwrite
        each other. Returns None if the movie does not exist.
        """
        pipeline = [
            {'$set': {
                'upvotes': {'$max': [
                    0, {'$add': [{'$ifNull': ['$upvotes', 0]}, up_delta]}]},
                'downvotes': {'$max': [
                    0, {'$add': [{'$ifNull': ['$downvotes', 0]},
                                 down_delta]}]},
                'updated_at': '$$NOW',
            }},
            {'$set': {'score': {'$subtract': ['$upvotes', '$downvotes']}}},
        ]
        return await self.col.find_one_and_update(
            {'_id': ObjectId(movie_id)},
            pipeline,
            projection=COUNTERS_PROJECTION,
            return_document=ReturnDocument.AFTER,
            session=session,
        )

    async def set_counters(
        self,
        movie_id: str,
        upvotes: int,
        downvotes: int,
        *,
        expected: Optional[Dict[str, Any]] = None,
        session=None,
    ) -> Optional[Dict[str, Any]]:
        """
        Overwrite counters (reconciliation).
        With ``expected`` the write only lands if upvotes/downvotes still
        hold the values read earlier; None means the movie is gone or a
        vote moved the counters in between.
        """
        query: Dict[str, Any] = {'_id': ObjectId(movie_id)}
        if expected is not None:
            query['upvotes'] = expected.get('upvotes', 0)
            query['downvotes'] = expected.get('downvotes', 0)
        return await self.col.find_one_and_update(
            query,
            {'$set': {
                'upvotes': upvotes,
                'downvotes': downvotes,
                'score': upvotes - downvotes,
                'updated_at': datetime.now(timezone.utc),
            }},
            projection=COUNTERS_PROJECTION,
            return_document=ReturnDocument.AFTER,
            session=session,
        )
