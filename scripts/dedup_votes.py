from pymongo import MongoClient, DESCENDING
from moviehub_api.core.config import settings
from moviehub_api.services.repositories.ballots_repo import COLLECTION


def main():
    db = MongoClient(settings.mongo_dsn)[settings.mongo_db]
    col = db[COLLECTION]

    # (user, movie) keys with more than one ballot
    pipeline = [
        {"$group": {"_id": {"user_id": "$user_id",
                            "movie_id": "$movie_id"}, "count": {"$sum": 1}}},
        {"$match": {"count": {"$gt": 1}}}
    ]
    dups = list(col.aggregate(pipeline))
    print(f"Duplicate keys: {len(dups)}")

    # keep the most recently touched ballot
    touched = set()
    for d in dups:
        key = d["_id"]
        docs = list(col.find(key).sort([("updated_at", DESCENDING),
                                        ("created_at", DESCENDING)]))
        keep_id = docs[0]["_id"]
        to_delete = [x["_id"] for x in docs[1:]]
        if to_delete:
            col.delete_many({"_id": {"$in": to_delete}})
            touched.add(key["movie_id"])
            print(f"  kept={keep_id}, deleted={len(to_delete)} for {key}")

    print(f"Dedup done. Movies to reconcile: {len(touched)}"
          " (scripts/reconcile_scores.py)")


if __name__ == "__main__":
    main()
