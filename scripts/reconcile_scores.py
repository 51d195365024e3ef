"""Recount every movie's vote counters from its ballots."""

from __future__ import annotations

import asyncio
import sys

from moviehub_api.core.config import settings
from moviehub_api.core.logger import setup_json_logging, shutdown_logging
from moviehub_api.db.mongo import close_client, get_mongo_db
from moviehub_api.services.repositories.ballots_repo import BallotsRepo
from moviehub_api.services.repositories.movies_repo import MoviesRepo
from moviehub_api.services.score_ledger import ScoreLedger


async def main(movie_ids: list[str]) -> None:
    setup_json_logging(service=f"{settings.app_name}.reconcile")
    db = await get_mongo_db()
    ledger = ScoreLedger(MoviesRepo(db), BallotsRepo(db),
                         use_transactions=settings.mongo_transactions)
    try:
        if movie_ids:
            for movie_id in movie_ids:
                score = await ledger.reconcile(movie_id)
                print(movie_id, score.model_dump() if score else "missing")
        else:
            report = await ledger.reconcile_all()
            print(f"checked={report.checked} repaired={report.repaired}")
    finally:
        await close_client()
        shutdown_logging()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
