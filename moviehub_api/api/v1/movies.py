from http import HTTPStatus
from fastapi import APIRouter, Depends, Path, Query

from moviehub_api.api.http_utils import (
    handle_runtime_errors, not_found_if_none,
)
from moviehub_api.dependencies import (
    CurrentUser, current_user, get_movies_service, get_score_ledger,
)
from moviehub_api.models.common import OBJECT_ID_PATTERN
from moviehub_api.models.movies import (
    MovieCreateRequest, MovieDeleteResponse, MovieDetailResponse,
    MovieItem, MovieListResponse, MovieScore,
)
from moviehub_api.services.movies_service import MoviesService
from moviehub_api.services.score_ledger import ScoreLedger

router = APIRouter(prefix="/api/v1/movies", tags=["movies"])

ERRMAP = {
    "movie_not_found": (HTTPStatus.NOT_FOUND, "Movie not found"),
    "not_authorized": (HTTPStatus.FORBIDDEN,
                       "Not authorized to delete this movie"),
}


@router.get("", response_model=MovieListResponse, status_code=HTTPStatus.OK)
@handle_runtime_errors(ERRMAP)
async def list_movies(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: MoviesService = Depends(get_movies_service),
):
    return await svc.list_movies(limit=limit, offset=offset)


@router.post("", response_model=MovieItem, status_code=HTTPStatus.CREATED)
@handle_runtime_errors(ERRMAP)
async def create_movie(
    body: MovieCreateRequest,
    user: CurrentUser = Depends(current_user),
    svc: MoviesService = Depends(get_movies_service),
):
    return await svc.create_movie(user_id=user.id, data=body)


@router.get("/{movie_id}", response_model=MovieDetailResponse,
            status_code=HTTPStatus.OK)
@handle_runtime_errors(ERRMAP)
async def get_movie(
    movie_id: str = Path(..., pattern=OBJECT_ID_PATTERN),
    votes_limit: int = Query(50, ge=1, le=200),
    svc: MoviesService = Depends(get_movies_service),
):
    return not_found_if_none(
        await svc.get_movie(movie_id, votes_limit=votes_limit))


@router.get("/{movie_id}/score", response_model=MovieScore,
            status_code=HTTPStatus.OK)
@handle_runtime_errors(ERRMAP)
async def get_movie_score(
    movie_id: str = Path(..., pattern=OBJECT_ID_PATTERN),
    ledger: ScoreLedger = Depends(get_score_ledger),
):
    return not_found_if_none(await ledger.get_score(movie_id))


@router.delete("/{movie_id}", response_model=MovieDeleteResponse,
               status_code=HTTPStatus.OK)
@handle_runtime_errors(ERRMAP)
async def delete_movie(
    movie_id: str = Path(..., pattern=OBJECT_ID_PATTERN),
    user: CurrentUser = Depends(current_user),
    svc: MoviesService = Depends(get_movies_service),
):
    return await svc.delete_movie(user_id=user.id,
                                  role=user.role,
                                  movie_id=movie_id)
