"""Score ledger: movie vote counters and the score derived from them."""

from __future__ import annotations

import logging
from typing import Optional

from pymongo.errors import PyMongoError

from moviehub_api.core.errors import StorageUnavailable, VoteConflict
from moviehub_api.models.movies import MovieScore, ReconcileResponse
from moviehub_api.services.repositories.ballots_repo import BallotsRepo
from moviehub_api.services.repositories.movies_repo import MoviesRepo

logger = logging.getLogger(__name__)


def to_score(doc: dict) -> MovieScore:
    return MovieScore(
        movie_id=str(doc['_id']),
        upvotes=int(doc.get('upvotes', 0)),
        downvotes=int(doc.get('downvotes', 0)),
        score=int(doc.get('score', 0)),
    )


class ScoreLedger:
    """Owns the upvotes/downvotes/score fields of every movie."""

    def __init__(
        self,
        movies: MoviesRepo,
        ballots: BallotsRepo,
        *,
        use_transactions: bool = True,
        max_attempts: int = 3,
    ) -> None:
        self.movies = movies
        self.ballots = ballots
        self.use_transactions = use_transactions
        self.max_attempts = max_attempts

    # ----- WRITE -----

    async def apply_delta(
        self,
        movie_id: str,
        up_delta: int = 0,
        down_delta: int = 0,
        *,
        session=None,
    ) -> Optional[MovieScore]:
        """Apply counter deltas (floored at zero) and recompute score.

        Returns None when the movie is gone.
        """
        doc = await self.movies.apply_counter_delta(
            movie_id, up_delta, down_delta, session=session)
        return None if doc is None else to_score(doc)

    # ----- READ -----

    async def get_score(self, movie_id: str) -> Optional[MovieScore]:
        try:
            doc = await self.movies.get_counters(movie_id)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_score_get_error: {error}') from error
        return None if doc is None else to_score(doc)

    # ----- REPAIR -----

    async def _in_txn(self, fn):
        if not self.use_transactions:
            return await fn(None)
        async with await self.ballots.client.start_session() as session:
            return await session.with_transaction(fn)

    async def _recount_pass(self, movie_id: str, session):
        """
        Read counters, tally ballots, write the tally back only if the
        counters still hold what was read. Returns (before, after), None
        when the movie is gone, or False when a vote got in between.
        """
        before = await self.movies.get_counters(movie_id, session=session)
        if before is None:
            return None
        tally = await self.ballots.tally(movie_id, session=session)
        after = await self.movies.set_counters(
            movie_id, tally['up'], tally['down'],
            expected=before, session=session)
        if after is None:
            return False
        return to_score(before), to_score(after)

    async def _recount(
            self,
            movie_id: str) -> Optional[tuple[MovieScore, MovieScore]]:
        for attempt in range(1, self.max_attempts + 1):
            pair = await self._in_txn(
                lambda session: self._recount_pass(movie_id, session))
            if pair is not False:
                break
            logger.warning('score_recount_raced',
                           extra={'movie_id': movie_id, 'attempt': attempt})
        else:
            raise VoteConflict(
                f'vote_conflict: counters of {movie_id} kept moving')

        if pair is None:
            return None
        current, fixed = pair
        if current != fixed:
            logger.warning(
                'score_drift_repaired',
                extra={
                    'movie_id': movie_id,
                    'before': current.model_dump(),
                    'after': fixed.model_dump(),
                },
            )
        return current, fixed

    async def reconcile(self, movie_id: str) -> Optional[MovieScore]:
        """Recount a movie's ballots and overwrite its counters."""
        try:
            pair = await self._recount(movie_id)
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_score_reconcile_error: {error}') from error
        return None if pair is None else pair[1]

    async def reconcile_all(self) -> ReconcileResponse:
        """Reconcile every movie; report how many had drifted."""
        checked = repaired = 0
        try:
            movie_ids = [mid async for mid in self.movies.iter_ids()]
            for movie_id in movie_ids:
                try:
                    pair = await self._recount(movie_id)
                except VoteConflict:
                    # busy movie; the next run picks it up
                    logger.warning('score_reconcile_skipped',
                                   extra={'movie_id': movie_id})
                    continue
                if pair is None:
                    continue
                checked += 1
                if pair[0] != pair[1]:
                    repaired += 1
        except PyMongoError as error:
            raise StorageUnavailable(
                f'mongo_score_reconcile_error: {error}') from error

        logger.info('score_reconcile_done',
                    extra={'checked': checked, 'repaired': repaired})
        return ReconcileResponse(checked=checked, repaired=repaired)
