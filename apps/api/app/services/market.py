# apps/api/app/services/market.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from apps.api.app.core.model_math import clamp, is_finite, safe_num
from apps.api.app.schemas.odds import MarketAnchor

BLEND_BAND: Tuple[float, float] = (0.35, 0.80)
VALUE_EDGE_CAP = 0.15

# (max gap, alpha): the closer model and market agree, the more we trust the market
ALPHA_STEPS = ((0.04, 0.65), (0.08, 0.45))
ALPHA_WIDE_GAP = 0.25


@dataclass(frozen=True)
class BlendResult:
    adjusted_prob: float
    alpha: float
    market_prob: Optional[float] = None
    gap: Optional[float] = None


def american_to_implied(price) -> Optional[float]:
    """American odds -> raw implied probability (still carries vig)."""
    odds = safe_num(price)
    if odds is None or odds == 0:
        return None
    if odds < 0:
        return -odds / (-odds + 100.0)
    return 100.0 / (odds + 100.0)


def devig(home_price, away_price) -> Optional[Tuple[float, float, float]]:
    """Normalize both sides to sum to 1. Returns (home_prob, away_prob, vig)."""
    home_raw = american_to_implied(home_price)
    away_raw = american_to_implied(away_price)
    if home_raw is None or away_raw is None:
        return None
    total = home_raw + away_raw
    if total <= 0:
        return None
    return home_raw / total, away_raw / total, total - 1.0


def anchor_from_prices(bookmaker: str, home_team: str, away_team: str, home_price, away_price) -> MarketAnchor:
    fair = devig(home_price, away_price)
    return MarketAnchor(
        bookmaker=bookmaker,
        home_team=home_team,
        away_team=away_team,
        home_moneyline_price=safe_num(home_price),
        away_moneyline_price=safe_num(away_price),
        home_implied_prob=fair[0] if fair else None,
        away_implied_prob=fair[1] if fair else None,
        vig=fair[2] if fair else None,
    )


# schedule-provider spellings that differ from sportsbook feeds
TEAM_NAME_ALIASES: Dict[str, str] = {
    "la clippers": "los angeles clippers",
    "la lakers": "los angeles lakers",
}


def normalize_team_name(name: str) -> str:
    key = re.sub(r"[^a-z0-9]+", " ", (name or "").lower()).strip()
    return TEAM_NAME_ALIASES.get(key, key)


def market_key(home_name: str, away_name: str) -> str:
    return f"{normalize_team_name(home_name)}|{normalize_team_name(away_name)}"


def blend_alpha(gap: float) -> float:
    for max_gap, alpha in ALPHA_STEPS:
        if gap <= max_gap:
            return alpha
    return ALPHA_WIDE_GAP


def blend(model_prob: float, market_prob: Optional[float]) -> BlendResult:
    if not is_finite(market_prob):
        return BlendResult(adjusted_prob=model_prob, alpha=0.0)
    gap = abs(model_prob - market_prob)
    alpha = blend_alpha(gap)
    adjusted = (1.0 - alpha) * model_prob + alpha * market_prob
    return BlendResult(
        adjusted_prob=clamp(adjusted, *BLEND_BAND),
        alpha=alpha,
        market_prob=market_prob,
        gap=gap,
    )


def value_edge(adjusted_prob: float, market_prob: Optional[float]) -> Optional[float]:
    """Home-side value against the market line, capped to a believable size."""
    if not is_finite(market_prob):
        return None
    return clamp(adjusted_prob - market_prob, -VALUE_EDGE_CAP, VALUE_EDGE_CAP)
