"""In-memory doubles for the Mongo repositories.

They honour the same contracts as the real repos (unique ballots, compare
and set, zero-floored counters) and yield to the event loop on every call so
concurrent coroutines interleave the way they would against a server.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class FakeMoviesRepo:
    def __init__(self) -> None:
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}

    def add(self, title: str = "Heat", added_by: Optional[str] = None,
            upvotes: int = 0, downvotes: int = 0) -> str:
        """Seed a movie directly; returns its id."""
        oid = ObjectId()
        self.docs[oid] = {
            "_id": oid,
            "title": title,
            "description": "A description long enough.",
            "added_by": ObjectId(added_by) if added_by else ObjectId(),
            "upvotes": upvotes,
            "downvotes": downvotes,
            "score": upvotes - downvotes,
            "created_at": _now(),
            "updated_at": _now(),
        }
        return str(oid)

    def title_of(self, movie_id: ObjectId) -> Optional[str]:
        doc = self.docs.get(movie_id)
        return doc["title"] if doc else None

    async def exists(self, movie_id: str) -> bool:
        await asyncio.sleep(0)
        return ObjectId(movie_id) in self.docs

    async def get_by_id(self, movie_id: str):
        await asyncio.sleep(0)
        doc = self.docs.get(ObjectId(movie_id))
        return dict(doc) if doc else None

    async def get_counters(self, movie_id: str, *, session=None):
        doc = await self.get_by_id(movie_id)
        if doc is None:
            return None
        return {k: doc[k] for k in ("_id", "upvotes", "downvotes", "score")}

    async def list_by_score(self, limit: int, offset: int) -> List[dict]:
        await asyncio.sleep(0)
        docs = sorted(self.docs.values(),
                      key=lambda d: (d["score"], d["created_at"], d["_id"]),
                      reverse=True)
        return [dict(d) for d in docs[offset:offset + limit]]

    async def count(self) -> int:
        return len(self.docs)

    async def list_recent(self, limit: int) -> List[dict]:
        await asyncio.sleep(0)
        docs = sorted(self.docs.values(),
                      key=lambda d: (d["created_at"], d["_id"]),
                      reverse=True)
        return [dict(d) for d in docs[:limit]]

    async def iter_ids(self):
        for oid in list(self.docs):
            await asyncio.sleep(0)
            yield str(oid)

    async def insert(self, title: str, description: str, added_by: str):
        await asyncio.sleep(0)
        oid = ObjectId()
        doc = {
            "_id": oid, "title": title, "description": description,
            "added_by": ObjectId(added_by),
            "upvotes": 0, "downvotes": 0, "score": 0,
            "created_at": _now(), "updated_at": _now(),
        }
        self.docs[oid] = doc
        return dict(doc)

    async def delete(self, movie_id: str, *, session=None) -> bool:
        await asyncio.sleep(0)
        return self.docs.pop(ObjectId(movie_id), None) is not None

    async def apply_counter_delta(self, movie_id: str, up_delta: int,
                                  down_delta: int, *, session=None):
        await asyncio.sleep(0)
        doc = self.docs.get(ObjectId(movie_id))
        if doc is None:
            return None
        doc["upvotes"] = max(0, doc["upvotes"] + up_delta)
        doc["downvotes"] = max(0, doc["downvotes"] + down_delta)
        doc["score"] = doc["upvotes"] - doc["downvotes"]
        doc["updated_at"] = _now()
        return await self.get_counters(movie_id)

    async def set_counters(self, movie_id: str, upvotes: int,
                           downvotes: int, *, expected=None, session=None):
        await asyncio.sleep(0)
        doc = self.docs.get(ObjectId(movie_id))
        if doc is None:
            return None
        if expected is not None and (
                (doc["upvotes"], doc["downvotes"])
                != (expected["upvotes"], expected["downvotes"])):
            return None
        doc.update(upvotes=upvotes, downvotes=downvotes,
                   score=upvotes - downvotes, updated_at=_now())
        return await self.get_counters(movie_id)


class FakeBallotsRepo:
    def __init__(self, movies: Optional[FakeMoviesRepo] = None,
                 users: Optional[Dict[str, str]] = None) -> None:
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}
        self.movies = movies
        self.users = users if users is not None else {}

    def _key_match(self, user_id: str, movie_id: str):
        uid, mid = ObjectId(user_id), ObjectId(movie_id)
        for doc in self.docs.values():
            if doc["user_id"] == uid and doc["movie_id"] == mid:
                return doc
        return None

    async def find(self, user_id: str, movie_id: str, *, session=None):
        await asyncio.sleep(0)
        doc = self._key_match(user_id, movie_id)
        return dict(doc) if doc else None

    async def insert(self, user_id: str, movie_id: str, direction: str,
                     *, session=None) -> str:
        await asyncio.sleep(0)
        if self._key_match(user_id, movie_id) is not None:
            raise DuplicateKeyError(
                "E11000 duplicate key error index: votes_user_movie", 11000)
        oid = ObjectId()
        now = _now()
        self.docs[oid] = {
            "_id": oid,
            "user_id": ObjectId(user_id),
            "movie_id": ObjectId(movie_id),
            "direction": direction,
            "created_at": now,
            "updated_at": now,
        }
        return str(oid)

    async def update_direction(self, ballot_id: ObjectId, expected: str,
                               direction: str, *, session=None) -> bool:
        await asyncio.sleep(0)
        doc = self.docs.get(ballot_id)
        if doc is None or doc["direction"] != expected:
            return False
        doc["direction"] = direction
        doc["updated_at"] = _now()
        return True

    async def delete(self, ballot_id: ObjectId, expected: str,
                     *, session=None) -> bool:
        await asyncio.sleep(0)
        doc = self.docs.get(ballot_id)
        if doc is None or doc["direction"] != expected:
            return False
        del self.docs[ballot_id]
        return True

    async def delete_by_movie(self, movie_id: str, *, session=None) -> int:
        await asyncio.sleep(0)
        mid = ObjectId(movie_id)
        doomed = [k for k, d in self.docs.items() if d["movie_id"] == mid]
        for key in doomed:
            del self.docs[key]
        return len(doomed)

    async def tally(self, movie_id: str, *, session=None) -> Dict[str, int]:
        await asyncio.sleep(0)
        mid = ObjectId(movie_id)
        counts = {"up": 0, "down": 0}
        for doc in self.docs.values():
            if doc["movie_id"] == mid:
                counts[doc["direction"]] += 1
        return counts

    def _newest_first(self, field: str, value: ObjectId) -> List[dict]:
        docs = [dict(d) for d in self.docs.values() if d[field] == value]
        docs.sort(key=lambda d: (d["created_at"], d["_id"]), reverse=True)
        return docs

    async def list_by_movie(self, movie_id: str, limit: int,
                            offset: int) -> List[dict]:
        await asyncio.sleep(0)
        docs = self._newest_first("movie_id", ObjectId(movie_id))
        page = docs[offset:offset + limit]
        for doc in page:
            doc["user_name"] = self.users.get(str(doc["user_id"]))
        return page

    async def list_by_user(self, user_id: str, limit: int,
                           offset: int) -> List[dict]:
        await asyncio.sleep(0)
        docs = self._newest_first("user_id", ObjectId(user_id))
        page = docs[offset:offset + limit]
        for doc in page:
            doc["movie_title"] = (self.movies.title_of(doc["movie_id"])
                                  if self.movies else None)
        return page

    async def count_by_movie(self, movie_id: str) -> int:
        return len(self._newest_first("movie_id", ObjectId(movie_id)))

    async def count_by_user(self, user_id: str) -> int:
        return len(self._newest_first("user_id", ObjectId(user_id)))

    async def count(self) -> int:
        return len(self.docs)
