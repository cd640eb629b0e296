# apps/api/app/adapters/nba.py
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from apps.api.app.adapters.base import LeagueAdapter
from apps.api.app.core.config import BALLDONTLIE_API_KEY, BALLDONTLIE_BASE_URL
from apps.api.app.core.errors import ConfigError, UpstreamError
from apps.api.app.core.model_math import safe_num
from apps.api.app.schemas.games import GameResult, ScheduledGame, TeamRef
from apps.api.app.services.status import normalize_status

logger = logging.getLogger(__name__)

PER_PAGE = 100
CHUNK_DAYS = 7
MAX_PAGES = 50


def team_ref(team: Dict[str, Any]) -> TeamRef:
    abbr = str(team.get("abbreviation") or team.get("id") or "").strip()
    return TeamRef(
        id=f"nba-{abbr.lower()}",
        display_name=team.get("full_name") or team.get("name") or abbr,
        abbreviation=abbr or None,
        logo_url=None,
    )


def parse_game(row: Dict[str, Any]) -> ScheduledGame:
    try:
        home, away = row["home_team"], row["visitor_team"]
        game_id = row["id"]
    except (KeyError, TypeError) as e:
        raise UpstreamError(f"Unexpected balldontlie game row: missing {e}") from e
    if not isinstance(home, dict) or not isinstance(away, dict):
        raise UpstreamError(f"Unexpected balldontlie game row {game_id}: missing team")
    try:
        return ScheduledGame(
            game_id=f"nba-{game_id}",
            date=str(row.get("date") or "")[:10],
            status=normalize_status(row.get("status")),
            home=team_ref(home),
            away=team_ref(away),
            home_score=safe_num(row.get("home_team_score")),
            away_score=safe_num(row.get("visitor_team_score")),
            postseason=bool(row.get("postseason")),
        )
    except ValidationError as e:
        raise UpstreamError(f"Malformed balldontlie game row {game_id}: {e}") from e


def to_result(game: ScheduledGame) -> GameResult:
    return GameResult(
        date=game.date,
        league="nba",
        home_team_id=game.home.id,
        away_team_id=game.away.id,
        home_points=game.home_score,
        away_points=game.away_score,
    )


class NBAAdapter(LeagueAdapter):
    """balldontlie v1: /games with dates[] filters and cursor pagination."""

    league = "nba"
    upstream = "balldontlie"

    def __init__(self, api_key: str = BALLDONTLIE_API_KEY, base_url: str = BALLDONTLIE_BASE_URL, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigError("Missing BALLDONTLIE_API_KEY (or NBA_API_KEY) for NBA data")
        return {"Authorization": self.api_key}

    def _games(self, days: List[str], use_cache: bool = True) -> List[Dict[str, Any]]:
        headers = self._headers()
        rows: List[Dict[str, Any]] = []
        cursor: Optional[Any] = None
        for _ in range(MAX_PAGES):
            params = [("dates[]", d) for d in days] + [("per_page", PER_PAGE)]
            if cursor is not None:
                params.append(("cursor", cursor))
            payload = self._get(f"{self.base_url}/games", params=params, headers=headers, use_cache=use_cache) or {}
            rows.extend(payload.get("data") or [])
            cursor = (payload.get("meta") or {}).get("next_cursor")
            if not cursor:
                break
        return rows

    def get_schedule(self, league: str, day: str) -> List[ScheduledGame]:
        return [parse_game(row) for row in self._games([day], use_cache=False)]

    def get_history(self, league: str, start: str, end: str) -> List[GameResult]:
        results: List[GameResult] = []
        cur, last = date.fromisoformat(start), date.fromisoformat(end)
        while cur <= last:
            chunk_end = min(cur + timedelta(days=CHUNK_DAYS - 1), last)
            days = [(cur + timedelta(days=i)).isoformat() for i in range((chunk_end - cur).days + 1)]
            for row in self._games(days):
                game = parse_game(row)
                if game.status == "Final":
                    results.append(to_result(game))
            cur = chunk_end + timedelta(days=1)
        logger.info("[NBA] history %s..%s: %d final games", start, end, len(results))
        return results
