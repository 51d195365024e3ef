from http import HTTPStatus
from fastapi import APIRouter, Depends, Path

from moviehub_api.api.http_utils import (
    handle_runtime_errors, not_found_if_none,
)
from moviehub_api.dependencies import (
    admin_user, get_movies_service, get_score_ledger,
)
from moviehub_api.models.common import OBJECT_ID_PATTERN
from moviehub_api.models.movies import (
    AdminStatsResponse, MovieScore, ReconcileResponse,
)
from moviehub_api.services.movies_service import MoviesService
from moviehub_api.services.score_ledger import ScoreLedger

router = APIRouter(prefix="/api/v1/admin",
                   tags=["admin"],
                   dependencies=[Depends(admin_user)])


@router.get("/stats",
            response_model=AdminStatsResponse,
            status_code=HTTPStatus.OK)
@handle_runtime_errors({})
async def ledger_stats(
    svc: MoviesService = Depends(get_movies_service),
):
    """Totals, the ten best scored movies and the five newest."""
    return await svc.stats()


@router.post("/scores/reconcile",
             response_model=ReconcileResponse,
             status_code=HTTPStatus.OK)
@handle_runtime_errors({})
async def reconcile_all_scores(
    ledger: ScoreLedger = Depends(get_score_ledger),
):
    """Recount every movie's counters from its ballots."""
    return await ledger.reconcile_all()


@router.post("/scores/reconcile/{movie_id}",
             response_model=MovieScore,
             status_code=HTTPStatus.OK)
@handle_runtime_errors({})
async def reconcile_movie_score(
    movie_id: str = Path(..., pattern=OBJECT_ID_PATTERN),
    ledger: ScoreLedger = Depends(get_score_ledger),
):
    return not_found_if_none(await ledger.reconcile(movie_id))
