# apps/api/app/routers/upsets.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from apps.api.app.routers.predictions import League, Mode, Model, slate_request
from apps.api.app.schemas.upsets import UpsetMode, UpsetsResponse
from apps.api.app.services.predictions import PredictionService
from apps.api.app.services.registry import get_prediction_service
from apps.api.app.services.upsets import resolve_limit, resolve_min_win, upsets_response

router = APIRouter(prefix="/upsets", tags=["upsets"])


@router.get("", response_model=UpsetsResponse, summary="Underdogs with live win equity on one slate")
async def get_upsets(
    league: League = Query("nba"),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today (UTC)"),
    window_days: Optional[str] = Query(None, alias="windowDays"),
    min_win: Optional[str] = Query(None, alias="minWin", description="Minimum underdog win probability"),
    limit: Optional[str] = Query(None),
    mode: UpsetMode = Query("watch", description="strict keeps only games where the model took the underdog"),
    model: Model = Query("v1"),
    slate_mode: Mode = Query("regular", alias="slateMode"),
    service: PredictionService = Depends(get_prediction_service),
):
    req = slate_request(league, date, window_days, model, slate_mode)
    slate = await service.build(req)
    return upsets_response(slate, mode=mode, min_win=resolve_min_win(min_win), limit=resolve_limit(limit))
