# apps/api/app/services/assembler.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from apps.api.app.core.model_math import fmt_signed, is_finite
from apps.api.app.schemas.games import ScheduledGame
from apps.api.app.schemas.predictions import MarketBlock, PredictionRecord, WhyDelta, WhyPanel
from apps.api.app.services.decision import Decision, Pick
from apps.api.app.services.edge_model import EdgeInputs

MAX_BULLETS = 6
MAX_DELTA_BULLETS = 3

PASS_HEADLINE = "PASS (no bet)"
PASS_REASON_TEXT = {
    "below_threshold": "Pass: edge not strong enough (toss-up).",
    "invalid_edge": "Pass: insufficient history for one or both teams.",
}


@dataclass(frozen=True)
class GameSignal:
    decision: Decision
    deltas: List[WhyDelta] = field(default_factory=list)
    factors: Dict[str, Any] = field(default_factory=dict)
    notes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SlateCounts:
    total: int
    picks: int
    passes: int


def _round(value: Optional[float], dp: int = 4) -> Optional[float]:
    return round(value, dp) if is_finite(value) else None


def make_delta(label: str, value: float, dp: int = 3, suffix: str = "") -> WhyDelta:
    return WhyDelta(label=label, value=round(value, 6), display=fmt_signed(value, dp, suffix))


def build_deltas(home: Optional[EdgeInputs], away: Optional[EdgeInputs],
                 margin_unit: str = " pts/g") -> List[WhyDelta]:
    """Home-minus-away differences behind the edge, biggest movers first."""
    if home is None or away is None:
        return []
    deltas = [
        make_delta("Win% diff", (home.win_pct - away.win_pct) * 100, 1, "%"),
        make_delta("Margin diff", home.margin - away.margin, 2, margin_unit),
        make_delta("Recent win% diff", (home.recent_win_pct - away.recent_win_pct) * 100, 1, "%"),
        make_delta("Recent margin diff", home.recent_margin - away.recent_margin, 2, margin_unit),
    ]
    return sorted(deltas, key=lambda d: abs(d.value), reverse=True)


def build_why(decision: Decision, deltas: Sequence[WhyDelta], notes: Sequence[str] = ()) -> WhyPanel:
    pick: Pick = decision.pick
    bullets: List[str] = []
    if pick.is_pass:
        bullets.append(PASS_REASON_TEXT.get(pick.reason, "Pass: insufficient signal."))
        if is_finite(decision.edge):
            bullets.append(f"Edge: {abs(decision.edge):.3f} (below threshold {decision.threshold:.3f})")
        else:
            bullets.append(f"Edge: n/a (threshold {decision.threshold:.3f})")
        headline = PASS_HEADLINE
    else:
        headline = "Home side value" if pick.side == "home" else "Away side value"
        bullets.append(f"Pick: {pick.side.upper()} (edge {abs(decision.edge):.3f} vs threshold {decision.threshold:.3f})")
        bullets.append(f"Confidence proxy: {round(decision.confidence * 100)}%")
        for delta in list(deltas)[:MAX_DELTA_BULLETS]:
            bullets.append(f"{delta.label}: {delta.display}")
    bullets.extend(notes)
    return WhyPanel(headline=headline, bullets=bullets[:MAX_BULLETS], deltas=list(deltas))


def to_record(game: ScheduledGame, signal: GameSignal) -> PredictionRecord:
    decision = signal.decision
    side = decision.pick.side
    team = None
    if side == "home":
        team = game.home
    elif side == "away":
        team = game.away

    market = MarketBlock(
        pick=side,
        recommended_team_id=team.id if team else None,
        recommended_team_name=team.display_name if team else None,
        edge=_round(decision.edge),
        tier=decision.tier if side else "PASS",
        confidence=_round(decision.confidence) if side else None,
        win_prob=_round(decision.win_prob) if side else None,
    )
    return PredictionRecord(
        game_id=game.game_id,
        date=game.date,
        status=game.status,
        home=game.home,
        away=game.away,
        home_score=game.home_score,
        away_score=game.away_score,
        market=market,
        why=build_why(decision, signal.deltas, signal.notes),
        factors=signal.factors,
    )


def missing_signal() -> GameSignal:
    return GameSignal(decision=Decision(pick=Pick(None, "invalid_edge"), edge=float("nan"), threshold=0.0))


def assemble(schedule: Sequence[ScheduledGame], signals: Mapping[str, GameSignal]) -> List[PredictionRecord]:
    """One record per scheduled game, in schedule order."""
    return [to_record(game, signals.get(game.game_id) or missing_signal()) for game in schedule]


def summarize(records: Sequence[PredictionRecord]) -> SlateCounts:
    picks = sum(1 for r in records if r.market.pick is not None)
    return SlateCounts(total=len(records), picks=picks, passes=len(records) - picks)
