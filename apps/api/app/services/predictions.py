# apps/api/app/services/predictions.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date as date_cls, timedelta
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from apps.api.app.adapters.base import LeagueAdapter, MarketProvider
from apps.api.app.core.cache import AsyncMemo, NoopGate, make_cache
from apps.api.app.core.config import CACHE_MAX_KEYS, CACHE_TTL_SECONDS, LEAGUE_WINDOW_DAYS
from apps.api.app.core.errors import InvalidDateError, SportsDataError, UnsupportedLeagueError
from apps.api.app.core.model_math import is_finite
from apps.api.app.schemas.games import ScheduledGame
from apps.api.app.schemas.odds import MarketAnchor
from apps.api.app.schemas.predictions import PredictionsMeta, PredictionsResponse
from apps.api.app.services.assembler import GameSignal, assemble, build_deltas, make_delta, summarize
from apps.api.app.services.decision import DecisionPolicy, make_decision, policy_for
from apps.api.app.services.edge_model import EdgeContext, EdgeWeights, compute_edge, edge_inputs, weights_for
from apps.api.app.services.history import LONG_WINDOW, SHORT_WINDOW, TeamRollingStats, aggregate, stats_for
from apps.api.app.services.market import blend, market_key, value_edge

logger = logging.getLogger(__name__)

MODES = ("regular", "tournament")


def parse_day(raw: Optional[str]) -> str:
    try:
        return date_cls.fromisoformat(str(raw or "").strip()).isoformat()
    except ValueError:
        raise InvalidDateError(f"Invalid date {raw!r}, expected YYYY-MM-DD") from None


def resolve_window(league: str, raw: Any = None) -> int:
    """Clamp a requested windowDays into the league's bounds; junk falls back to the default."""
    if league not in LEAGUE_WINDOW_DAYS:
        raise UnsupportedLeagueError(f"Unsupported league {league!r}")
    default, lo, hi = LEAGUE_WINDOW_DAYS[league]
    try:
        value = int(float(raw))
    except (TypeError, ValueError):
        return default
    return max(lo, min(hi, value))


def history_window(day: str, window_days: int) -> Tuple[str, str]:
    """History ends the day before the slate and spans window_days days."""
    end = date_cls.fromisoformat(day) - timedelta(days=1)
    start = end - timedelta(days=max(window_days, 1) - 1)
    return start.isoformat(), end.isoformat()


@dataclass(frozen=True)
class SlateRequest:
    league: str
    date: str
    window_days: int
    model: str = "v1"
    mode: str = "regular"

    @property
    def key(self) -> Tuple[str, str, int, str, str]:
        return (self.league, self.date, self.window_days, self.model, self.mode)

    @property
    def tournament(self) -> bool:
        return self.mode == "tournament"

    @property
    def model_version(self) -> str:
        return f"{self.league}-edge-{self.model}"


def _team_factors(stats: TeamRollingStats) -> Dict[str, Any]:
    def _r(v):
        return round(v, 4) if v is not None else None

    return {
        "ok": stats.ok,
        "gamesPlayed": stats.games_played,
        "record": f"{stats.wins}-{stats.losses}" + (f"-{stats.ties}" if stats.ties else ""),
        "winPct": _r(stats.win_pct),
        "marginPerGame": _r(stats.margin_per_game),
        "recent": {
            str(n): {"played": w.played, "winPct": _r(w.win_pct), "margin": _r(w.margin)}
            for n, w in sorted(stats.windows.items())
        },
    }


def game_signal(
    game: ScheduledGame,
    stats: Mapping[str, TeamRollingStats],
    weights: EdgeWeights,
    policy: DecisionPolicy,
    req: SlateRequest,
    anchors: Optional[Mapping[str, MarketAnchor]] = None,
) -> GameSignal:
    home = stats_for(stats, game.home.id)
    away = stats_for(stats, game.away.id)
    context = EdgeContext(neutral_site=game.neutral_site, tournament=req.tournament or game.postseason)
    edge = compute_edge(home, away, weights, context)
    decision = make_decision(edge, policy, home, away)

    factors: Dict[str, Any] = {
        "edge": round(decision.edge, 4) if is_finite(decision.edge) else None,
        "rawEdge": round(edge, 4) if is_finite(edge) else None,
        "threshold": round(decision.threshold, 4),
        "reason": decision.pick.reason,
        "neutralSite": context.neutral_site,
        "tournament": context.tournament,
        "underdogNudge": decision.nudged,
        "homeModelProb": round(decision.home_model_prob, 4) if decision.home_model_prob is not None else None,
        "home": _team_factors(home),
        "away": _team_factors(away),
        "market": None,
    }
    notes = []

    anchor = anchors.get(market_key(game.home.display_name, game.away.display_name)) if anchors else None
    if anchor is not None and anchor.home_implied_prob is not None and decision.home_model_prob is not None:
        blended = blend(decision.home_model_prob, anchor.home_implied_prob)
        decision = decision.with_home_prob(blended.adjusted_prob)
        home_value = value_edge(blended.adjusted_prob, anchor.home_implied_prob)
        factors["market"] = {
            "bookmaker": anchor.bookmaker,
            "homeMoneyline": anchor.home_moneyline_price,
            "awayMoneyline": anchor.away_moneyline_price,
            "homeImpliedProb": round(anchor.home_implied_prob, 4),
            "awayImpliedProb": round(anchor.away_implied_prob, 4),
            "vig": round(anchor.vig, 4) if anchor.vig is not None else None,
            "alpha": blended.alpha,
            "adjustedHomeProb": round(blended.adjusted_prob, 4),
            "homeValueEdge": round(home_value, 4) if home_value is not None else None,
        }
        if decision.pick.side and home_value is not None:
            side_value = home_value if decision.pick.side == "home" else -home_value
            if side_value < 0:
                notes.append("Market prices the other side higher.")

    deltas = []
    if home.ok and away.ok:
        unit = " goals/g" if req.league == "nhl" else " pts/g"
        deltas = build_deltas(edge_inputs(home, weights), edge_inputs(away, weights), unit)
        home_adv = 0.0 if (context.neutral_site or context.tournament) else weights.home_advantage
        deltas.append(make_delta("Edge vs threshold", abs(decision.edge) - decision.threshold))
        deltas.append(make_delta("Home advantage", home_adv))
        if factors["market"] and factors["market"]["homeValueEdge"] is not None:
            deltas.append(make_delta("Market gap", factors["market"]["homeValueEdge"]))
    return GameSignal(decision=decision, deltas=deltas, factors=factors, notes=notes)


class PredictionService:
    """
    Builds one league/date slate: schedule + history -> stats -> edges -> picks.

    Results are memoized per (league, date, windowDays, model, mode); concurrent
    callers for the same key share one computation. Upstream calls run in worker
    threads behind the gate registered for that provider's upstream.
    """

    def __init__(
        self,
        adapters: Mapping[str, LeagueAdapter],
        market: Optional[MarketProvider] = None,
        memo: Optional[AsyncMemo] = None,
        gates: Optional[Mapping[str, Any]] = None,
    ):
        self.adapters = dict(adapters)
        self.market = market
        self.memo = memo or AsyncMemo(make_cache(CACHE_TTL_SECONDS, CACHE_MAX_KEYS))
        self.gates = dict(gates or {})
        self._noop = NoopGate()

    async def _call(self, provider: Any, fn: Callable[..., Any], *args: Any) -> Any:
        gate = self.gates.get(getattr(provider, "upstream", ""), self._noop)
        async with gate:
            return await asyncio.to_thread(fn, *args)

    def _meta(self, req: SlateRequest, **extra: Any) -> PredictionsMeta:
        return PredictionsMeta(
            league=req.league,
            date=req.date,
            window_days=req.window_days,
            model=req.model,
            model_version=req.model_version,
            mode=req.mode,
            **extra,
        )

    def _failed(self, req: SlateRequest, error: str) -> PredictionsResponse:
        start, end = history_window(req.date, req.window_days)
        return PredictionsResponse(
            meta=self._meta(req, history_start=start, history_end=end, error=error),
            games=[],
        )

    async def build(self, req: SlateRequest, force: bool = False) -> PredictionsResponse:
        """Never raises for a league's failures; they land in meta.error with no games."""
        try:
            return await self.memo.get_or_compute(req.key, lambda: self._compute(req), force=force)
        except SportsDataError as e:
            logger.warning("[Predictions] %s %s failed: %s", req.league, req.date, e)
            return self._failed(req, str(e))
        except Exception as e:
            logger.exception("[Predictions] %s %s crashed", req.league, req.date)
            return self._failed(req, f"internal error: {type(e).__name__}: {e}")

    async def _market(self, req: SlateRequest) -> Optional[Dict[str, MarketAnchor]]:
        if self.market is None:
            return None
        try:
            return await self._call(self.market, self.market.get_market_odds, req.league, req.date)
        except SportsDataError as e:
            logger.warning("[Predictions] market lookup failed for %s %s: %s", req.league, req.date, e)
            return None

    async def _compute(self, req: SlateRequest) -> PredictionsResponse:
        adapter = self.adapters.get(req.league)
        if adapter is None:
            raise UnsupportedLeagueError(f"Unsupported league {req.league!r}")
        if req.mode not in MODES:
            raise UnsupportedLeagueError(f"Unsupported mode {req.mode!r}")
        weights = weights_for(req.league, req.model, tournament=req.tournament)
        policy = policy_for(req.league, req.model, req.mode)
        start, end = history_window(req.date, req.window_days)

        schedule = await self._call(adapter, adapter.get_schedule, req.league, req.date)
        if not schedule:
            return PredictionsResponse(
                meta=self._meta(
                    req,
                    history_start=start,
                    history_end=end,
                    note=f"No {req.league.upper()} games scheduled for {req.date}.",
                ),
                games=[],
            )

        history, anchors = await asyncio.gather(
            self._call(adapter, adapter.get_history, req.league, start, end),
            self._market(req),
        )
        stats = aggregate(history, windows=(SHORT_WINDOW, LONG_WINDOW), before=req.date)

        signals = {g.game_id: game_signal(g, stats, weights, policy, req, anchors) for g in schedule}
        records = assemble(schedule, signals)
        counts = summarize(records)

        warnings = []
        if not history:
            warnings.append(f"No completed games found between {start} and {end}.")
        missing = sum(1 for s in signals.values() if s.decision.pick.reason == "invalid_edge")
        if missing:
            warnings.append(f"{missing} game(s) lack history for one or both teams.")
        if self.market is not None and req.league == "nba" and anchors is None:
            warnings.append("Market odds unavailable; using model probabilities only.")

        logger.info(
            "[Predictions] %s %s window=%d model=%s mode=%s: %d games, %d picks",
            req.league, req.date, req.window_days, req.model, req.mode, counts.total, counts.picks,
        )
        return PredictionsResponse(
            meta=self._meta(
                req,
                history_start=start,
                history_end=end,
                history_games_fetched=len(history),
                total_games=counts.total,
                pick_count=counts.picks,
                no_pick_count=counts.passes,
                market_available=bool(anchors),
                warnings=warnings,
            ),
            games=records,
        )
