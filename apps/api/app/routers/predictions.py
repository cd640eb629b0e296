# apps/api/app/routers/predictions.py
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from apps.api.app.core.errors import InvalidDateError
from apps.api.app.schemas.predictions import PredictionsResponse
from apps.api.app.services.predictions import PredictionService, SlateRequest, parse_day, resolve_window
from apps.api.app.services.registry import get_prediction_service

router = APIRouter(prefix="/predictions", tags=["predictions"])

League = Literal["nba", "nhl", "ncaam"]
Model = Literal["v1", "v2"]
Mode = Literal["regular", "tournament"]


def slate_request(league: str, date: Optional[str], window_days: Optional[str], model: str, mode: str) -> SlateRequest:
    if date is None:
        day = datetime.now(timezone.utc).date().isoformat()
    else:
        try:
            day = parse_day(date)
        except InvalidDateError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return SlateRequest(
        league=league,
        date=day,
        window_days=resolve_window(league, window_days),
        model=model,
        mode=mode,
    )


@router.get("", response_model=PredictionsResponse, summary="Value-edge picks for one league/date")
async def get_predictions(
    league: League = Query("nba"),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today (UTC)"),
    window_days: Optional[str] = Query(None, alias="windowDays", description="History window in days"),
    model: Model = Query("v1"),
    mode: Mode = Query("regular"),
    force: int = Query(0, ge=0, le=1, description="1 bypasses the slate cache"),
    service: PredictionService = Depends(get_prediction_service),
):
    """
    Errors from upstream providers do not fail the request; they come back as
    `meta.error` with an empty `games` list.
    """
    req = slate_request(league, date, window_days, model, mode)
    return await service.build(req, force=bool(force))


@router.get("/{league}", response_model=PredictionsResponse, summary="Same as /predictions?league=")
async def get_league_predictions(
    league: League,
    date: Optional[str] = Query(None),
    window_days: Optional[str] = Query(None, alias="windowDays"),
    model: Model = Query("v1"),
    mode: Mode = Query("regular"),
    force: int = Query(0, ge=0, le=1),
    service: PredictionService = Depends(get_prediction_service),
):
    req = slate_request(league, date, window_days, model, mode)
    return await service.build(req, force=bool(force))
