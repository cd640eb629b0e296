# apps/api/app/services/scorer.py
from __future__ import annotations

import logging
from statistics import fmean
from typing import List, Optional, Sequence

from apps.api.app.core.model_math import safe_num
from apps.api.app.schemas.grading import GradingCounts, GradingMetrics, GradingOutcome, GradingSummary
from apps.api.app.schemas.predictions import PredictionRecord
from apps.api.app.services.status import is_final

logger = logging.getLogger(__name__)


def _scores(record: PredictionRecord):
    home = safe_num(record.home_score)
    away = safe_num(record.away_score)
    if home is None or away is None or (home == 0 and away == 0):
        return None
    return home, away


def grade(record: PredictionRecord) -> Optional[GradingOutcome]:
    """Grade one completed game. Returns None while the game is not final."""
    if not is_final(record.status):
        return None
    side = record.market.pick
    base = dict(
        game_id=record.game_id,
        pick_side=side,
        recommended_team_id=record.market.recommended_team_id,
        home_score=safe_num(record.home_score),
        away_score=safe_num(record.away_score),
        edge=record.market.edge,
        win_prob=record.market.win_prob,
        confidence=record.market.confidence,
    )
    scores = _scores(record)
    if scores is None:
        return GradingOutcome(result="NOSCORE", **base)
    if side is None:
        return GradingOutcome(result="NOPICK", **base)

    home, away = scores
    picked, other = (home, away) if side == "home" else (away, home)
    if picked > other:
        result = "WIN"
    elif picked < other:
        result = "LOSS"
    else:
        result = "PUSH"
    return GradingOutcome(result=result, **base)


def _mean(values: List[Optional[float]]) -> Optional[float]:
    nums = [v for v in values if v is not None]
    return round(fmean(nums), 4) if nums else None


def score(league: str, date: str, predictions: Sequence[PredictionRecord], model: str = "v1") -> GradingSummary:
    details: List[GradingOutcome] = []
    completed = 0
    for record in predictions:
        outcome = grade(record)
        if outcome is None:
            continue
        completed += 1
        details.append(outcome)

    wins = sum(1 for d in details if d.result == "WIN")
    losses = sum(1 for d in details if d.result == "LOSS")
    pushes = sum(1 for d in details if d.result == "PUSH")
    passes = sum(1 for d in details if d.result == "NOPICK")
    graded = [d for d in details if d.result in ("WIN", "LOSS", "PUSH")]

    counts = GradingCounts(
        games=len(predictions),
        completed=completed,
        picks=sum(1 for r in predictions if r.market.pick is not None),
        graded=len(graded),
        wins=wins,
        losses=losses,
        pushes=pushes,
        passes=passes,
    )
    decided = wins + losses
    metrics = GradingMetrics(
        win_rate=round(wins / decided, 4) if decided else None,
        avg_edge=_mean([abs(d.edge) if d.edge is not None else None for d in graded]),
        avg_win_prob=_mean([d.win_prob for d in graded]),
        avg_confidence=_mean([d.confidence for d in graded]),
    )
    logger.info(
        "[Scorer] %s %s: graded=%d W-L-P=%d-%d-%d pass=%d",
        league, date, counts.graded, wins, losses, pushes, passes,
    )
    return GradingSummary(league=league, date=date, model=model, counts=counts, metrics=metrics, details=details)
