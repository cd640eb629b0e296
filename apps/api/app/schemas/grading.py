# apps/api/app/schemas/grading.py
from typing import List, Literal, Optional

from pydantic import Field

from apps.api.app.schemas.base import FrozenCamelModel
from apps.api.app.schemas.predictions import PickSide

GradeResult = Literal["WIN", "LOSS", "PUSH", "NOPICK", "NOSCORE"]


class GradingOutcome(FrozenCamelModel):
    game_id: str
    pick_side: Optional[PickSide] = None
    result: GradeResult
    recommended_team_id: Optional[str] = None
    home_score: Optional[float] = None
    away_score: Optional[float] = None
    edge: Optional[float] = None
    win_prob: Optional[float] = None
    confidence: Optional[float] = None


class GradingCounts(FrozenCamelModel):
    games: int = 0
    completed: int = 0
    picks: int = 0
    graded: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    passes: int = Field(0, alias="pass")


class GradingMetrics(FrozenCamelModel):
    win_rate: Optional[float] = None
    avg_edge: Optional[float] = None
    avg_win_prob: Optional[float] = None
    avg_confidence: Optional[float] = None


class GradingSummary(FrozenCamelModel):
    league: str
    date: str
    model: str = "v1"
    counts: GradingCounts
    metrics: GradingMetrics
    details: List[GradingOutcome] = Field(default_factory=list)


class LeagueScoringResult(FrozenCamelModel):
    league: str
    ok: bool
    stored: bool = False
    summary: Optional[GradingSummary] = None
    error: Optional[str] = None


class ScoringRunResponse(FrozenCamelModel):
    date: str
    force: bool = False
    results: List[LeagueScoringResult] = Field(default_factory=list)
