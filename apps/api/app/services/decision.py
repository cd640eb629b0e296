# apps/api/app/services/decision.py
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Literal, Optional, Tuple

from apps.api.app.core.errors import UnsupportedLeagueError
from apps.api.app.core.model_math import clamp, is_finite, sigmoid
from apps.api.app.services.history import TeamRollingStats

PickReason = Literal["ok", "below_threshold", "invalid_edge"]

UNCERTAINTY_SPREAD = 0.06
STRONG_MULTIPLIER = 1.45
ELITE_MULTIPLIER = 2.0


@dataclass(frozen=True)
class Pick:
    side: Optional[str]  # "home" | "away" | None (PASS)
    reason: PickReason

    @property
    def is_pass(self) -> bool:
        return self.side is None


def decide(edge: float, threshold: float) -> Pick:
    if edge is None or not math.isfinite(edge):
        return Pick(None, "invalid_edge")
    if abs(edge) < threshold:
        return Pick(None, "below_threshold")
    return Pick("home" if edge > 0 else "away", "ok")


def uncertainty_threshold(home_played: int, away_played: int, base: float,
                          spread: float = UNCERTAINTY_SPREAD) -> float:
    """Wider threshold while either team has little history; 0 games counts as 1."""
    n = max(min(home_played, away_played), 1)
    return clamp(base + spread / math.sqrt(n), base, base + spread)


def tier_for(edge_abs: float, lean_cut: float, edge_cut: float,
             win_prob: Optional[float] = None, elite_prob: Optional[float] = None) -> str:
    if edge_abs is None or not math.isfinite(edge_abs) or edge_abs < lean_cut:
        return "PASS"
    if edge_abs < edge_cut:
        return "LEAN"
    if edge_abs < edge_cut * STRONG_MULTIPLIER:
        return "EDGE"
    if edge_abs < edge_cut * ELITE_MULTIPLIER:
        return "STRONG"
    if win_prob is not None and elite_prob is not None and win_prob < elite_prob:
        return "STRONG"
    return "ELITE"


def win_prob_from_edge(edge: float, scale: float = 0.11,
                       band: Tuple[float, float] = (0.33, 0.77)) -> float:
    """Home win probability implied by a signed edge."""
    return clamp(sigmoid(edge / scale), *band)


def confidence_from_edge(edge: float, scale: float,
                         band: Tuple[float, float] = (0.52, 0.95)) -> float:
    return clamp(sigmoid(abs(edge) / scale), *band)


def confidence_from_win_prob(prob: float, band: Tuple[float, float] = (0.52, 0.90)) -> float:
    return clamp(0.5 + 0.9 * abs(prob - 0.5), *band)


@dataclass(frozen=True)
class DecisionPolicy:
    base_threshold: float
    tier_edge_cut: float
    uncertainty_aware: bool = False
    confidence_mode: Literal["logistic", "win_prob"] = "logistic"
    confidence_scale: float = 0.17
    confidence_band: Tuple[float, float] = (0.53, 0.94)
    prob_scale: float = 0.11
    prob_band: Tuple[float, float] = (0.33, 0.77)
    elite_prob: float = 0.70
    underdog_nudge: Optional[float] = None


_V2 = dict(uncertainty_aware=True, confidence_mode="win_prob", confidence_band=(0.52, 0.90))

POLICIES: Dict[Tuple[str, str, str], DecisionPolicy] = {
    ("nba", "v1", "regular"): DecisionPolicy(0.075, 0.11),
    ("nba", "v2", "regular"): DecisionPolicy(0.07, 0.105, **_V2),
    ("nhl", "v1", "regular"): DecisionPolicy(0.085, 0.11, confidence_scale=0.19, confidence_band=(0.53, 0.93)),
    ("nhl", "v2", "regular"): DecisionPolicy(0.08, 0.11, **_V2),
    ("ncaam", "v1", "regular"): DecisionPolicy(0.095, 0.11, confidence_scale=0.22, confidence_band=(0.53, 0.92)),
    ("ncaam", "v2", "regular"): DecisionPolicy(0.09, 0.11, **_V2),
    ("ncaam", "v1", "tournament"): DecisionPolicy(
        0.075, 0.105, confidence_scale=0.24, confidence_band=(0.53, 0.92), underdog_nudge=1.08
    ),
    ("ncaam", "v2", "tournament"): DecisionPolicy(0.07, 0.105, underdog_nudge=1.08, **_V2),
}


def policy_for(league: str, model: str = "v1", mode: str = "regular") -> DecisionPolicy:
    policy = POLICIES.get((league, model, mode)) or POLICIES.get((league, model, "regular"))
    if policy is None:
        raise UnsupportedLeagueError(f"No decision policy for league={league!r} model={model!r}")
    return policy


@dataclass(frozen=True)
class Decision:
    pick: Pick
    edge: float
    threshold: float
    tier: str = "PASS"
    confidence: Optional[float] = None
    win_prob: Optional[float] = None  # for the picked side
    home_model_prob: Optional[float] = None
    nudged: bool = False
    lean_cut: float = 0.0
    edge_cut: float = 0.0
    elite_prob: Optional[float] = None
    confidence_mode: str = "logistic"
    confidence_band: Tuple[float, float] = (0.53, 0.94)

    def with_home_prob(self, home_prob: float) -> "Decision":
        """Re-derive the picked side's probability, tier and (for win_prob policies) confidence."""
        if self.pick.is_pass:
            return self
        side_prob = home_prob if self.pick.side == "home" else 1.0 - home_prob
        tier = tier_for(abs(self.edge), self.lean_cut, self.edge_cut, side_prob, self.elite_prob)
        confidence = self.confidence
        if self.confidence_mode == "win_prob":
            confidence = confidence_from_win_prob(side_prob, self.confidence_band)
        return replace(self, win_prob=side_prob, tier=tier, confidence=confidence)


def _picks_underdog(edge: float, home: TeamRollingStats, away: TeamRollingStats) -> bool:
    if home.win_pct is None or away.win_pct is None or edge == 0:
        return False
    if edge > 0:
        return home.win_pct < away.win_pct
    return away.win_pct < home.win_pct


def make_decision(edge: float, policy: DecisionPolicy,
                  home: TeamRollingStats, away: TeamRollingStats) -> Decision:
    nudged = False
    if policy.underdog_nudge and is_finite(edge) and _picks_underdog(edge, home, away):
        edge = edge * policy.underdog_nudge
        nudged = True

    if policy.uncertainty_aware:
        threshold = uncertainty_threshold(home.games_played, away.games_played, policy.base_threshold)
    else:
        threshold = policy.base_threshold

    pick = decide(edge, threshold)
    common = dict(
        edge=edge,
        threshold=threshold,
        nudged=nudged,
        lean_cut=threshold,
        edge_cut=policy.tier_edge_cut,
        elite_prob=policy.elite_prob,
        confidence_mode=policy.confidence_mode,
        confidence_band=policy.confidence_band,
    )
    if not is_finite(edge):
        return Decision(pick=pick, **common)

    home_prob = win_prob_from_edge(edge, policy.prob_scale, policy.prob_band)
    if pick.is_pass:
        return Decision(pick=pick, home_model_prob=home_prob, **common)

    side_prob = home_prob if pick.side == "home" else 1.0 - home_prob
    if policy.confidence_mode == "win_prob":
        confidence = confidence_from_win_prob(side_prob, policy.confidence_band)
    else:
        confidence = confidence_from_edge(edge, policy.confidence_scale, policy.confidence_band)

    return Decision(
        pick=pick,
        tier=tier_for(abs(edge), threshold, policy.tier_edge_cut, side_prob, policy.elite_prob),
        confidence=confidence,
        win_prob=side_prob,
        home_model_prob=home_prob,
        **common,
    )
