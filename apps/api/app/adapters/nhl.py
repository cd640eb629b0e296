# apps/api/app/adapters/nhl.py
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from apps.api.app.adapters.base import LeagueAdapter
from apps.api.app.core.config import NHL_API_BASE
from apps.api.app.core.errors import UpstreamError
from apps.api.app.core.model_math import safe_num
from apps.api.app.schemas.games import GameResult, ScheduledGame, TeamRef
from apps.api.app.services.status import normalize_status

logger = logging.getLogger(__name__)

PLAYOFF_GAME_TYPE = 3


def _text(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("default") or "")
    return str(value or "")


def team_ref(team: Dict[str, Any]) -> TeamRef:
    abbr = str(team.get("abbrev") or "").strip()
    name = " ".join(p for p in (_text(team.get("placeName")), _text(team.get("commonName"))) if p)
    return TeamRef(
        id=f"nhl-{abbr.lower()}",
        display_name=name or _text(team.get("name")) or abbr,
        abbreviation=abbr or None,
        logo_url=team.get("logo"),
    )


def parse_game(game: Dict[str, Any], day: str) -> ScheduledGame:
    home, away = game.get("homeTeam") or {}, game.get("awayTeam") or {}
    return ScheduledGame(
        game_id=f"nhl-{game.get('id')}",
        date=day,
        status=normalize_status(game.get("gameState")),
        home=team_ref(home),
        away=team_ref(away),
        home_score=safe_num(home.get("score")),
        away_score=safe_num(away.get("score")),
        neutral_site=bool(game.get("neutralSite")),
        postseason=game.get("gameType") == PLAYOFF_GAME_TYPE,
    )


class NHLAdapter(LeagueAdapter):
    """api-web.nhle.com weekly schedule endpoint."""

    league = "nhl"
    upstream = "nhle"

    def __init__(self, base_url: str = NHL_API_BASE, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def _week(self, day: str, use_cache: bool = True) -> Dict[str, Any]:
        return self._get(f"{self.base_url}/schedule/{day}", use_cache=use_cache) or {}

    def _games_in(self, payload: Dict[str, Any], start: str, end: str) -> List[ScheduledGame]:
        games = []
        for week_day in payload.get("gameWeek") or []:
            d = str(week_day.get("date") or "")
            if start <= d <= end:
                for g in week_day.get("games") or []:
                    try:
                        games.append(parse_game(g, d))
                    except (AttributeError, TypeError, ValidationError) as e:
                        raise UpstreamError(f"Malformed NHL game on {d}: {e}") from e
        return games

    def get_schedule(self, league: str, day: str) -> List[ScheduledGame]:
        return self._games_in(self._week(day, use_cache=False), day, day)

    def get_history(self, league: str, start: str, end: str) -> List[GameResult]:
        results: List[GameResult] = []
        cur = start
        while cur <= end:
            payload = self._week(cur)
            for game in self._games_in(payload, start, end):
                if game.status != "Final":
                    continue
                results.append(GameResult(
                    date=game.date,
                    league="nhl",
                    home_team_id=game.home.id,
                    away_team_id=game.away.id,
                    home_points=game.home_score,
                    away_points=game.away_score,
                ))
            nxt: Optional[str] = payload.get("nextStartDate")
            if not nxt or nxt <= cur:
                nxt = (date.fromisoformat(cur) + timedelta(days=7)).isoformat()
            cur = nxt
        logger.info("[NHL] history %s..%s: %d final games", start, end, len(results))
        return results
