"""Build the votes and movies indexes without starting the API."""

from pymongo import MongoClient
from pymongo.errors import OperationFailure

from moviehub_api.core.config import settings
from moviehub_api.services.repositories import ballots_repo, movies_repo

REPOS = (ballots_repo, movies_repo)


def main() -> int:
    db = MongoClient(settings.mongo_dsn)[settings.mongo_db]
    print("Using DSN:", settings.mongo_dsn, "DB:", settings.mongo_db)

    for repo in REPOS:
        try:
            names = db[repo.COLLECTION].create_indexes(repo.INDEXES)
        except OperationFailure as e:
            # E11000 here means duplicate ballots: run dedup_votes.py
            print(f"{repo.COLLECTION}: failed: {e}")
            return 1
        print(f"{repo.COLLECTION}: {', '.join(names)}")

    print("Indexes ensured.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
