# apps/api/app/services/upsets.py
"""
Upset watch: a read-only view over an assembled slate.

The favorite is decided from the factor gap (season win%, margin and last-10
form), independent of the pick. Every pick then implies a win probability
for the underdog: the pick's own probability when the model took the
underdog, its complement otherwise.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from apps.api.app.core.model_math import clamp, is_finite, safe_num
from apps.api.app.schemas.games import TeamRef
from apps.api.app.schemas.predictions import PredictionRecord, PredictionsResponse
from apps.api.app.schemas.upsets import UpsetPick, UpsetRow, UpsetSignals, UpsetTeam, UpsetsMeta, UpsetsResponse

logger = logging.getLogger(__name__)

DEFAULT_MIN_WIN = 0.30
MIN_WIN_BOUNDS = (0.05, 0.95)
DEFAULT_LIMIT = 20
LIMIT_BOUNDS = (1, 50)

# gap points per unit of win% / margin per game / last-10 win%
GAP_WEIGHTS = (220.0, 10.0, 160.0)
GAP_SCORE_PENALTY = 0.04


def resolve_min_win(raw: Any = None) -> float:
    value = safe_num(raw)
    if value is None:
        return DEFAULT_MIN_WIN
    return clamp(value, *MIN_WIN_BOUNDS)


def resolve_limit(raw: Any = None) -> int:
    try:
        value = int(float(raw))
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return max(LIMIT_BOUNDS[0], min(LIMIT_BOUNDS[1], value))


def _diff(home: Dict[str, Any], away: Dict[str, Any], key: str) -> float:
    h, a = safe_num(home.get(key)), safe_num(away.get(key))
    return h - a if h is not None and a is not None else 0.0


def gap_from_factors(factors: Dict[str, Any]) -> float:
    """Signed favorite gap; positive means the home side is favored."""
    home = factors.get("home") or {}
    away = factors.get("away") or {}
    home_recent = (home.get("recent") or {}).get("10") or {}
    away_recent = (away.get("recent") or {}).get("10") or {}
    win_w, margin_w, recent_w = GAP_WEIGHTS
    return (
        _diff(home, away, "winPct") * win_w
        + _diff(home, away, "marginPerGame") * margin_w
        + _diff(home_recent, away_recent, "winPct") * recent_w
    )


def _is_prob(value: Optional[float]) -> bool:
    return is_finite(value) and 0.0 < value < 1.0


def pick_probability(record: PredictionRecord) -> Tuple[Optional[float], bool]:
    """Picked side's win probability, falling back to the confidence proxy."""
    if _is_prob(record.market.win_prob):
        return record.market.win_prob, True
    if is_finite(record.market.confidence):
        return clamp(record.market.confidence, 0.05, 0.95), False
    return None, False


def _team(ref: TeamRef, is_home: bool) -> UpsetTeam:
    return UpsetTeam(
        id=ref.id,
        display_name=ref.display_name,
        abbreviation=ref.abbreviation,
        logo_url=ref.logo_url,
        is_home=is_home,
    )


def _matchup(record: PredictionRecord) -> str:
    away = record.away.abbreviation or record.away.display_name
    home = record.home.abbreviation or record.home.display_name
    return f"{away} @ {home}"


def upset_row(record: PredictionRecord) -> Optional[UpsetRow]:
    side = record.market.pick
    if side is None:
        return None
    p_pick, used_model = pick_probability(record)
    if p_pick is None:
        return None

    gap = gap_from_factors(record.factors)
    favorite_side = "home" if gap >= 0 else "away"
    underdog_side = "away" if favorite_side == "home" else "home"
    picked_underdog = side == underdog_side
    underdog_prob = p_pick if picked_underdog else 1.0 - p_pick

    underdog_ref = record.home if underdog_side == "home" else record.away
    favorite_ref = record.away if underdog_side == "home" else record.home

    why = [
        f"Underdog equity: {underdog_prob * 100:.1f}%",
        f"Favorite side (gap): {favorite_side.upper()} ({round(abs(gap))})",
    ]
    if picked_underdog:
        why.append("Model already picked underdog")
    why.append("Using model winProb" if used_model else "Using confidence fallback")

    return UpsetRow(
        game_id=record.game_id,
        matchup=_matchup(record),
        underdog=_team(underdog_ref, underdog_side == "home"),
        favorite=_team(favorite_ref, favorite_side == "home"),
        win_prob=round(underdog_prob, 4),
        pick=UpsetPick(
            pick_side=side,
            recommended_team_id=record.market.recommended_team_id,
            recommended_team_name=record.market.recommended_team_name,
            edge=record.market.edge,
            confidence=record.market.confidence,
            win_prob=round(p_pick, 4),
        ),
        signals=UpsetSignals(
            base_gap=round(gap, 2),
            score=round(underdog_prob * 100 - abs(gap) * GAP_SCORE_PENALTY, 4),
            favorite_side=favorite_side,
            underdog_side=underdog_side,
            model_picked_underdog=picked_underdog,
            used_model_win_prob=used_model,
        ),
        why=why,
    )


def find_upsets(
    records: Sequence[PredictionRecord],
    min_win: float = DEFAULT_MIN_WIN,
    mode: str = "watch",
    limit: int = DEFAULT_LIMIT,
) -> Tuple[List[UpsetRow], int]:
    """
    Returns (rows, strict_underdog_picks).

    `strict` keeps only games where the model itself took the underdog; the
    strict count is over every pick, before the min_win and limit filters.
    """
    rows: List[UpsetRow] = []
    strict_picks = 0
    for record in records:
        row = upset_row(record)
        if row is None:
            continue
        if row.signals.model_picked_underdog:
            strict_picks += 1
        elif mode == "strict":
            continue
        if row.win_prob < min_win:
            continue
        rows.append(row)

    # stable: ties keep slate order
    rows.sort(key=lambda r: r.signals.score, reverse=True)
    return rows[:limit], strict_picks


def upsets_response(
    slate: PredictionsResponse,
    mode: str = "watch",
    min_win: float = DEFAULT_MIN_WIN,
    limit: int = DEFAULT_LIMIT,
) -> UpsetsResponse:
    meta = dict(
        league=slate.meta.league,
        date=slate.meta.date,
        mode=mode,
        model=slate.meta.model,
        window_days=slate.meta.window_days,
        min_win=min_win,
        limit=limit,
        slate_games=len(slate.games),
    )
    if slate.meta.error:
        return UpsetsResponse(meta=UpsetsMeta(error=slate.meta.error, **meta), rows=[])

    rows, strict_picks = find_upsets(slate.games, min_win=min_win, mode=mode, limit=limit)
    logger.info(
        "[Upsets] %s %s mode=%s: %d of %d games, %d underdog picks",
        slate.meta.league, slate.meta.date, mode, len(rows), len(slate.games), strict_picks,
    )
    return UpsetsResponse(
        meta=UpsetsMeta(count=len(rows), strict_underdog_picks=strict_picks, **meta),
        rows=rows,
    )
