# apps/api/app/routers/meta.py
from fastapi import APIRouter

from apps.api.app.core.config import LEAGUE_WINDOW_DAYS, SUPPORTED_LEAGUES
from apps.api.app.services.edge_model import MODEL_VERSIONS
from apps.api.app.services.predictions import MODES

router = APIRouter(prefix="", tags=["meta"])


@router.get("/leagues")
def list_leagues():
    return {
        "leagues": [
            {
                "league": league,
                "windowDays": dict(zip(("default", "min", "max"), LEAGUE_WINDOW_DAYS[league])),
            }
            for league in SUPPORTED_LEAGUES
        ],
        "models": list(MODEL_VERSIONS),
        "modes": list(MODES),
    }
