from typing import Dict

from bson import ObjectId
from httpx import AsyncClient


def new_user() -> str:
    return str(ObjectId())


def uid_header(user_id: str, role: str | None = None) -> Dict[str, str]:
    headers = {"X-User-Id": user_id}
    if role:
        headers["X-User-Role"] = role
    return headers


async def vote(client: AsyncClient, user_id: str, movie_id: str,
               direction: str):
    return await client.post("/api/v1/votes",
                             json={"movie_id": movie_id,
                                   "direction": direction},
                             headers=uid_header(user_id))


async def read_score(client: AsyncClient, movie_id: str) -> dict:
    r = await client.get(f"/api/v1/movies/{movie_id}/score")
    assert r.status_code == 200
    return r.json()
