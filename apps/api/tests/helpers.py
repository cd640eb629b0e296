# apps/api/tests/helpers.py
from collections import Counter
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from apps.api.app.adapters.base import LeagueAdapter, MarketProvider
from apps.api.app.core.cache import AsyncMemo, make_cache
from apps.api.app.schemas.games import GameResult, ScheduledGame, TeamRef
from apps.api.app.schemas.odds import MarketAnchor
from apps.api.app.services.predictions import PredictionService

SLATE_DAY = "2025-01-20"


def _no_network(*args, **kwargs):
    raise AssertionError("tests must not hit the network")


def team(league: str, abbr: str, name: Optional[str] = None) -> TeamRef:
    return TeamRef(id=f"{league}-{abbr.lower()}", display_name=name or abbr.upper(), abbreviation=abbr.upper())


def results_for(
    team_id: str,
    scores: Sequence[Tuple[int, int]],
    last_day: str = "2025-01-19",
    league: str = "nba",
    opponent_prefix: str = "nba-opp",
) -> List[GameResult]:
    """Home games for team_id, oldest first, one per day ending on last_day."""
    end = date.fromisoformat(last_day)
    start = end - timedelta(days=len(scores) - 1)
    rows = []
    for i, (pf, pa) in enumerate(scores):
        rows.append(GameResult(
            date=(start + timedelta(days=i)).isoformat(),
            league=league,
            home_team_id=team_id,
            away_team_id=f"{opponent_prefix}{i}",
            home_points=pf,
            away_points=pa,
        ))
    return rows


# 10-2 with +8/g, the two losses oldest
STRONG_SCORES = [(98, 100), (98, 100)] + [(110, 100)] * 10
# 4-8 with -3/g, the four wins oldest
WEAK_SCORES = [(103, 100)] * 4 + [(94, 100)] * 8
# 6-6, even margin
EVEN_SCORES = [(105, 100), (95, 100)] * 6


def scheduled(game_id: str, home: TeamRef, away: TeamRef, day: str = SLATE_DAY, **kwargs) -> ScheduledGame:
    return ScheduledGame(game_id=game_id, date=day, home=home, away=away, **kwargs)


class FakeAdapter(LeagueAdapter):
    upstream = "fake"

    def __init__(self, league: str, schedule: Optional[Dict[str, List[ScheduledGame]]] = None,
                 history: Optional[List[GameResult]] = None, error: Optional[Exception] = None):
        super().__init__(fetch=_no_network)
        self.league = league
        self.schedule = schedule or {}
        self.history = history or []
        self.error = error
        self.calls = Counter()

    def get_schedule(self, league: str, day: str) -> List[ScheduledGame]:
        self.calls["schedule"] += 1
        if self.error is not None:
            raise self.error
        return list(self.schedule.get(day, []))

    def get_history(self, league: str, start: str, end: str) -> List[GameResult]:
        self.calls["history"] += 1
        return [g for g in self.history if start <= g.date <= end]


class FakeMarket(MarketProvider):
    upstream = "fake-odds"

    def __init__(self, anchors: Optional[Dict[str, MarketAnchor]] = None):
        self.anchors = anchors
        self.calls = 0

    def get_market_odds(self, league: str, day: str):
        self.calls += 1
        return self.anchors if league == "nba" else None


def nba_slate(status: str = "Scheduled", home_score=None, away_score=None) -> FakeAdapter:
    """BOS (10-2) hosts DET (4-8); NYK and CHI are both 6-6."""
    bos = team("nba", "bos", "Boston Celtics")
    det = team("nba", "det", "Detroit Pistons")
    nyk = team("nba", "nyk", "New York Knicks")
    chi = team("nba", "chi", "Chicago Bulls")
    history = (
        results_for(bos.id, STRONG_SCORES, opponent_prefix="nba-a")
        + results_for(det.id, WEAK_SCORES, opponent_prefix="nba-b")
        + results_for(nyk.id, EVEN_SCORES, opponent_prefix="nba-c")
        + results_for(chi.id, EVEN_SCORES, opponent_prefix="nba-d")
    )
    games = [
        scheduled("nba-1", bos, det, status=status, home_score=home_score, away_score=away_score),
        scheduled("nba-2", nyk, chi, status=status, home_score=home_score, away_score=away_score),
    ]
    return FakeAdapter("nba", schedule={SLATE_DAY: games}, history=history)


def make_service(adapters, market=None) -> PredictionService:
    return PredictionService(adapters=adapters, market=market, memo=AsyncMemo(make_cache(60, 100)))
