from http import HTTPStatus
from fastapi import APIRouter, Depends, Path, Query, Response

from moviehub_api.api.http_utils import handle_runtime_errors
from moviehub_api.dependencies import (
    CurrentUser, current_user, get_votes_service,
)
from moviehub_api.models.common import OBJECT_ID_PATTERN
from moviehub_api.models.votes import (
    MovieVoteListResponse, UserVoteListResponse, UserVoteResponse,
    VoteCastRequest, VoteCastResponse, VoteOutcome,
)
from moviehub_api.services.votes_service import VotesService

router = APIRouter(prefix="/api/v1/votes", tags=["votes"])

ERRMAP = {
    "movie_not_found": (HTTPStatus.NOT_FOUND, "Movie not found"),
}

OUTCOMES = {
    VoteOutcome.added: (HTTPStatus.CREATED, "Vote added"),
    VoteOutcome.changed: (HTTPStatus.OK, "Vote updated"),
    VoteOutcome.removed: (HTTPStatus.OK, "Vote removed"),
}


@router.post("",
             response_model=VoteCastResponse,
             status_code=HTTPStatus.OK,
             responses={201: {"model": VoteCastResponse}})
@handle_runtime_errors(ERRMAP)
async def cast_vote(
    body: VoteCastRequest,
    response: Response,
    user: CurrentUser = Depends(current_user),
    svc: VotesService = Depends(get_votes_service),
):
    result = await svc.cast_vote(user_id=user.id,
                                 movie_id=body.movie_id,
                                 direction=body.direction)
    status, message = OUTCOMES[result.outcome]
    response.status_code = status
    return VoteCastResponse(message=message, direction=result.direction)


@router.get("/movie/{movie_id}",
            response_model=MovieVoteListResponse,
            status_code=HTTPStatus.OK)
@handle_runtime_errors(ERRMAP)
async def list_movie_votes(
    movie_id: str = Path(..., pattern=OBJECT_ID_PATTERN),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    svc: VotesService = Depends(get_votes_service),
):
    return await svc.list_by_movie(movie_id=movie_id,
                                   limit=limit,
                                   offset=offset)


@router.get("/movie/{movie_id}/me",
            response_model=UserVoteResponse,
            status_code=HTTPStatus.OK)
@handle_runtime_errors(ERRMAP)
async def get_my_vote(
    movie_id: str = Path(..., pattern=OBJECT_ID_PATTERN),
    user: CurrentUser = Depends(current_user),
    svc: VotesService = Depends(get_votes_service),
):
    direction = await svc.get_user_vote(user_id=user.id, movie_id=movie_id)
    return UserVoteResponse(movie_id=movie_id,
                            user_id=user.id,
                            direction=direction)


@router.get("/user/{user_id}",
            response_model=UserVoteListResponse,
            status_code=HTTPStatus.OK)
@handle_runtime_errors(ERRMAP)
async def list_user_votes(
    user_id: str = Path(..., pattern=OBJECT_ID_PATTERN),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    svc: VotesService = Depends(get_votes_service),
):
    return await svc.list_by_user(user_id=user_id,
                                  limit=limit,
                                  offset=offset)
