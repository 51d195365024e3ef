from pymongo import MongoClient

from moviehub_api.core.config import settings
from moviehub_api.services.repositories import ballots_repo, movies_repo


def dump(db, col_name: str) -> None:
    print(f"\n{col_name}:")
    for info in db[col_name].list_indexes():
        flags = " unique" if info.get("unique") else ""
        print(f" - {info['name']}: {dict(info['key'])}{flags}")


if __name__ == "__main__":
    database = MongoClient(settings.mongo_dsn)[settings.mongo_db]
    for repo in (ballots_repo, movies_repo):
        dump(database, repo.COLLECTION)
