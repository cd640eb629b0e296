# apps/api/app/routers/admin.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from apps.api.app.core import config
from apps.api.app.core.errors import InvalidDateError
from apps.api.app.schemas.grading import GradingSummary, ScoringRunResponse
from apps.api.app.services.predictions import parse_day
from apps.api.app.services.registry import get_grading_store, get_scoring_job
from apps.api.app.services.scoring import ScoringJob, parse_leagues
from apps.api.app.services.store import GradingStore

router = APIRouter(prefix="/admin", tags=["admin"])


def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    if config.ADMIN_TOKEN and x_admin_token != config.ADMIN_TOKEN:
        raise HTTPException(status_code=401, detail="Invalid or missing admin token")


def _day(raw: str) -> str:
    try:
        return parse_day(raw)
    except InvalidDateError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/scoring/run", response_model=ScoringRunResponse, dependencies=[Depends(require_admin)])
async def run_scoring(
    date: str = Query(..., description="YYYY-MM-DD slate to grade"),
    leagues: str = Query("nba", description="Comma-separated leagues"),
    force: int = Query(0, ge=0, le=1),
    model: Literal["v1", "v2"] = Query("v1"),
    job: ScoringJob = Depends(get_scoring_job),
):
    day = _day(date)
    league_list = parse_leagues(leagues)
    if not league_list:
        raise HTTPException(status_code=400, detail="No leagues given")
    return await job.run(day, league_list, model=model, force=bool(force))


@router.get("/scoring/{league}/{date}", response_model=GradingSummary, dependencies=[Depends(require_admin)])
def get_scoring(league: str, date: str, store: GradingStore = Depends(get_grading_store)):
    day = _day(date)
    summary = store.get(league.lower(), day)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"No grading stored for {league} {day}")
    return summary
