# apps/api/app/schemas/predictions.py
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from apps.api.app.schemas.base import FrozenCamelModel
from apps.api.app.schemas.games import GameStatus, TeamRef

PickSide = Literal["home", "away"]
Tier = Literal["PASS", "LEAN", "EDGE", "STRONG", "ELITE"]


class MarketBlock(FrozenCamelModel):
    pick: Optional[PickSide] = None
    recommended_team_id: Optional[str] = None
    recommended_team_name: Optional[str] = None
    edge: Optional[float] = None
    tier: Tier = "PASS"
    confidence: Optional[float] = None
    win_prob: Optional[float] = None


class WhyDelta(FrozenCamelModel):
    label: str
    value: float
    display: str


class WhyPanel(FrozenCamelModel):
    headline: str
    bullets: List[str] = Field(default_factory=list, max_length=6)
    deltas: List[WhyDelta] = Field(default_factory=list)


class PredictionRecord(FrozenCamelModel):
    game_id: str
    date: str
    status: GameStatus
    home: TeamRef
    away: TeamRef
    home_score: Optional[float] = None
    away_score: Optional[float] = None
    market: MarketBlock
    why: WhyPanel
    factors: Dict[str, Any] = Field(default_factory=dict)


class PredictionsMeta(FrozenCamelModel):
    league: str
    date: str
    window_days: int
    model: str
    model_version: str
    mode: str = "regular"
    history_start: Optional[str] = None
    history_end: Optional[str] = None
    history_games_fetched: int = 0
    total_games: int = 0
    pick_count: int = 0
    no_pick_count: int = 0
    market_available: bool = False
    warnings: List[str] = Field(default_factory=list)
    note: Optional[str] = None
    error: Optional[str] = None


class PredictionsResponse(FrozenCamelModel):
    meta: PredictionsMeta
    games: List[PredictionRecord] = Field(default_factory=list)
