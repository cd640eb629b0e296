# apps/api/app/schemas/upsets.py
from typing import List, Literal, Optional

from pydantic import Field

from apps.api.app.schemas.base import FrozenCamelModel
from apps.api.app.schemas.predictions import PickSide

UpsetMode = Literal["watch", "strict"]


class UpsetTeam(FrozenCamelModel):
    id: str
    display_name: str
    abbreviation: Optional[str] = None
    logo_url: Optional[str] = None
    is_home: bool


class UpsetPick(FrozenCamelModel):
    pick_side: PickSide
    recommended_team_id: Optional[str] = None
    recommended_team_name: Optional[str] = None
    edge: Optional[float] = None
    confidence: Optional[float] = None
    win_prob: float  # picked side


class UpsetSignals(FrozenCamelModel):
    base_gap: float
    score: float
    favorite_side: PickSide
    underdog_side: PickSide
    model_picked_underdog: bool
    used_model_win_prob: bool


class UpsetRow(FrozenCamelModel):
    game_id: str
    matchup: str
    underdog: UpsetTeam
    favorite: UpsetTeam
    win_prob: float = Field(..., description="Underdog win probability")
    pick: UpsetPick
    signals: UpsetSignals
    why: List[str] = Field(default_factory=list)


class UpsetsMeta(FrozenCamelModel):
    league: str
    date: str
    mode: UpsetMode
    model: str
    window_days: int
    min_win: float
    limit: int
    slate_games: int = 0
    count: int = 0
    strict_underdog_picks: int = 0
    error: Optional[str] = None


class UpsetsResponse(FrozenCamelModel):
    meta: UpsetsMeta
    rows: List[UpsetRow] = Field(default_factory=list)
