"""Vote coordinator: toggle/flip ballots and keep movie counters in step."""

from __future__ import annotations

import logging
from typing import Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from moviehub_api.core.errors import (
    MovieNotFound,
    StorageUnavailable,
    VoteConflict,
)
from moviehub_api.models.votes import (
    MovieVoteItem,
    MovieVoteListResponse,
    UserVoteItem,
    UserVoteListResponse,
    VoteDirection,
    VoteOutcome,
    VoteResult,
)
from moviehub_api.services.repositories.ballots_repo import BallotsRepo
from moviehub_api.services.repositories.movies_repo import MoviesRepo
from moviehub_api.services.score_ledger import ScoreLedger
from moviehub_api.services.vote_transitions import plan_transition

logger = logging.getLogger(__name__)


def to_movie_vote_item(doc: dict) -> MovieVoteItem:
    return MovieVoteItem(
        vote_id=str(doc['_id']),
        movie_id=str(doc['movie_id']),
        user_id=str(doc['user_id']),
        user_name=doc.get('user_name'),
        direction=doc['direction'],
        created_at=doc['created_at'],
        updated_at=doc.get('updated_at', doc['created_at']),
    )


class VotesService:
    """Casts votes and serves ballot listings.

    A vote is two writes: the ballot, then the movie counters. With
    ``use_transactions`` both run inside one Mongo transaction; without it
    they are sequential and ``ScoreLedger.reconcile`` repairs any drift.
    """

    def __init__(
        self,
        ballots: BallotsRepo,
        movies: MoviesRepo,
        ledger: ScoreLedger,
        *,
        use_transactions: bool = True,
        max_attempts: int = 3,
    ) -> None:
        self.ballots = ballots
        self.movies = movies
        self.ledger = ledger
        self.use_transactions = use_transactions
        self.max_attempts = max_attempts

    # ---------- helpers ----------

    async def _in_txn(self, fn):
        """Run ``fn(session)`` in a transaction, or ``fn(None)`` if disabled.

        ``with_transaction`` retries transient write conflicts and unknown
        commit results on its own; anything else propagates.
        """
        if not self.use_transactions:
            return await fn(None)
        async with await self.ballots.client.start_session() as session:
            return await session.with_transaction(fn)

    async def _attempt(
        self,
        user_id: str,
        movie_id: str,
        direction: VoteDirection,
        session,
    ) -> Optional[VoteResult]:
        """One read-plan-write pass. None means the ballot moved; retry."""
        ballot = await self.ballots.find(user_id, movie_id, session=session)
        current = ballot['direction'] if ballot else None
        transition = plan_transition(current, direction)

        inserted = None
        if transition.outcome is VoteOutcome.added:
            inserted = await self.ballots.insert(
                user_id, movie_id, transition.direction.value,
                session=session)
        elif transition.outcome is VoteOutcome.changed:
            flipped = await self.ballots.update_direction(
                ballot['_id'], current, transition.direction.value,
                session=session)
            if not flipped:
                return None
        else:
            removed = await self.ballots.delete(
                ballot['_id'], current, session=session)
            if not removed:
                return None

        score = await self.ledger.apply_delta(
            movie_id,
            transition.up_delta,
            transition.down_delta,
            session=session,
        )
        if score is None:
            # movie deleted while we were voting; a transaction rolls
            # the insert back, otherwise drop the fresh ballot here
            if inserted is not None and session is None:
                await self.ballots.delete(
                    ObjectId(inserted), transition.direction.value)
            raise MovieNotFound()

        return VoteResult(
            outcome=transition.outcome,
            direction=transition.direction,
            movie_id=movie_id,
            upvotes=score.upvotes,
            downvotes=score.downvotes,
            score=score.score,
        )

    # ---------- VOTE ----------

    async def cast_vote(
        self,
        user_id: str,
        movie_id: str,
        direction: VoteDirection,
    ) -> VoteResult:
        """Insert, flip or remove the user's ballot on a movie."""
        direction = VoteDirection(direction)
        try:
            if not await self.movies.exists(movie_id):
                raise MovieNotFound()

            for attempt in range(1, self.max_attempts + 1):
                try:
                    result = await self._in_txn(
                        lambda session: self._attempt(
                            user_id, movie_id, direction, session))
                except DuplicateKeyError:
                    # a concurrent first vote won the insert
                    result = None

                if result is not None:
                    logger.info(
                        'vote_cast',
                        extra={
                            'movie_id': movie_id,
                            'outcome': result.outcome.value,
                            'direction': direction.value,
                            'attempt': attempt,
                        },
                    )
                    return result

                logger.warning(
                    'vote_ballot_conflict',
                    extra={'movie_id': movie_id, 'attempt': attempt},
                )
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_vote_error: {error}') from error

        raise VoteConflict(
            f'vote_conflict: gave up after {self.max_attempts} attempts')

    # ---------- READ ----------

    async def get_user_vote(
        self,
        user_id: str,
        movie_id: str,
    ) -> Optional[VoteDirection]:
        try:
            ballot = await self.ballots.find(user_id, movie_id)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_vote_get_error: {error}') from error
        return VoteDirection(ballot['direction']) if ballot else None

    async def list_by_movie(
        self,
        movie_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> MovieVoteListResponse:
        """Ballots on a movie, newest first."""
        try:
            docs = await self.ballots.list_by_movie(movie_id, limit, offset)
            total = await self.ballots.count_by_movie(movie_id)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_vote_list_error: {error}') from error
        return MovieVoteListResponse(
            items=[to_movie_vote_item(doc) for doc in docs], total=total)

    async def list_by_user(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> UserVoteListResponse:
        """Ballots cast by a user, newest first."""
        try:
            docs = await self.ballots.list_by_user(user_id, limit, offset)
            total = await self.ballots.count_by_user(user_id)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_vote_list_error: {error}') from error
        items = [
            UserVoteItem(
                vote_id=str(doc['_id']),
                movie_id=str(doc['movie_id']),
                user_id=str(doc['user_id']),
                movie_title=doc.get('movie_title'),
                direction=doc['direction'],
                created_at=doc['created_at'],
                updated_at=doc.get('updated_at', doc['created_at']),
            )
            for doc in docs
        ]
        return UserVoteListResponse(items=items, total=total)
