# apps/api/app/services/edge_model.py
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from apps.api.app.core.errors import UnsupportedLeagueError
from apps.api.app.core.model_math import clamp, shrink
from apps.api.app.services.history import LONG_WINDOW, SHORT_WINDOW, TeamRollingStats

WIN_PRIOR = 0.5
MARGIN_PRIOR = 0.0


@dataclass(frozen=True)
class ShrinkConfig:
    """Pseudo-counts pulling small samples toward the prior."""
    season_win_k: float = 18.0
    season_margin_k: float = 10.0
    recent_win_k: float = 6.0
    recent_margin_k: float = 5.0


@dataclass(frozen=True)
class EdgeWeights:
    win: float
    margin: float
    recent_win: float  # long-window win% difference
    recent_margin: float  # short-window margin difference
    margin_scale: float
    recent_margin_scale: float
    home_advantage: float
    shrink: Optional[ShrinkConfig] = None

    def __post_init__(self):
        total = self.win + self.margin + self.recent_win + self.recent_margin
        if total > 1.0 + 1e-9:
            raise ValueError(f"edge weights sum to {total:.3f}, must be <= 1")


@dataclass(frozen=True)
class EdgeContext:
    neutral_site: bool = False
    tournament: bool = False


MODEL_VERSIONS = ("v1", "v2")

WEIGHTS: Dict[Tuple[str, str], EdgeWeights] = {
    ("nba", "v1"): EdgeWeights(0.42, 0.28, 0.18, 0.12, 12.0, 14.0, 0.018),
    ("nba", "v2"): EdgeWeights(0.38, 0.32, 0.18, 0.12, 12.0, 14.0, 0.012, ShrinkConfig()),
    ("nhl", "v1"): EdgeWeights(0.45, 0.30, 0.15, 0.10, 3.0, 3.0, 0.015),
    ("nhl", "v2"): EdgeWeights(0.42, 0.32, 0.16, 0.10, 3.0, 3.0, 0.012, ShrinkConfig()),
    ("ncaam", "v1"): EdgeWeights(0.50, 0.30, 0.20, 0.0, 14.0, 14.0, 0.018),
    ("ncaam", "v2"): EdgeWeights(0.46, 0.32, 0.14, 0.08, 14.0, 14.0, 0.018, ShrinkConfig()),
}

# college tournament play leans harder on margin than on record
TOURNAMENT_OVERRIDES: Dict[str, Dict[str, float]] = {
    "ncaam": {"win": 0.46, "margin": 0.34},
}


def weights_for(league: str, model: str = "v1", tournament: bool = False) -> EdgeWeights:
    try:
        weights = WEIGHTS[(league, model)]
    except KeyError:
        raise UnsupportedLeagueError(f"No edge model for league={league!r} model={model!r}") from None
    if tournament and league in TOURNAMENT_OVERRIDES:
        weights = replace(weights, **TOURNAMENT_OVERRIDES[league])
    return weights


@dataclass(frozen=True)
class EdgeInputs:
    """Per-team inputs after optional shrinkage, kept for the why panel."""
    win_pct: float
    margin: float
    recent_win_pct: float
    recent_margin: float


def edge_inputs(stats: TeamRollingStats, weights: EdgeWeights) -> EdgeInputs:
    long_w = stats.recent(LONG_WINDOW)
    short_w = stats.recent(SHORT_WINDOW)
    win_pct = stats.win_pct
    margin = stats.margin_per_game
    recent_win = long_w.win_pct if long_w.win_pct is not None else win_pct
    recent_margin = short_w.margin if short_w.margin is not None else margin

    cfg = weights.shrink
    if cfg is None:
        return EdgeInputs(win_pct, margin, recent_win, recent_margin)
    return EdgeInputs(
        win_pct=shrink(win_pct, WIN_PRIOR, stats.games_played, cfg.season_win_k),
        margin=shrink(margin, MARGIN_PRIOR, stats.games_played, cfg.season_margin_k),
        recent_win_pct=shrink(recent_win, WIN_PRIOR, long_w.played, cfg.recent_win_k),
        recent_margin=shrink(recent_margin, MARGIN_PRIOR, short_w.played, cfg.recent_margin_k),
    )


def compute_edge(
    home: TeamRollingStats,
    away: TeamRollingStats,
    weights: EdgeWeights,
    context: EdgeContext = EdgeContext(),
) -> float:
    """Signed value edge, positive favours home. NaN when either side lacks history."""
    if not home.ok or not away.ok:
        return math.nan

    h = edge_inputs(home, weights)
    a = edge_inputs(away, weights)

    win_diff = h.win_pct - a.win_pct
    margin_diff = clamp((h.margin - a.margin) / weights.margin_scale, -1.0, 1.0)
    recent_win_diff = clamp(h.recent_win_pct - a.recent_win_pct, -1.0, 1.0)
    recent_margin_diff = clamp(
        (h.recent_margin - a.recent_margin) / weights.recent_margin_scale, -1.0, 1.0
    )
    home_adv = 0.0 if (context.neutral_site or context.tournament) else weights.home_advantage

    return (
        weights.win * win_diff
        + weights.margin * margin_diff
        + weights.recent_win * recent_win_diff
        + weights.recent_margin * recent_margin_diff
        + home_adv
    )
