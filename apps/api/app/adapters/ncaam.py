# apps/api/app/adapters/ncaam.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from apps.api.app.adapters.base import LeagueAdapter, iter_days
from apps.api.app.core.config import ESPN_NCAAM_PATH, ESPN_SITE_V2
from apps.api.app.core.errors import UpstreamError
from apps.api.app.core.model_math import safe_num
from apps.api.app.schemas.games import GameResult, ScheduledGame, TeamRef
from apps.api.app.services.status import normalize_status

logger = logging.getLogger(__name__)

LOGO_FALLBACK = "https://a.espncdn.com/i/teamlogos/ncaa/500/{id}.png"
# groups=50 is all of Division I
SCOREBOARD_PARAMS = {"groups": "50", "limit": "400"}


def _logo(team: Dict[str, Any]) -> Optional[str]:
    if team.get("logo"):
        return team["logo"]
    logos = team.get("logos") or []
    if logos and logos[0].get("href"):
        return logos[0]["href"]
    return LOGO_FALLBACK.format(id=team["id"]) if team.get("id") else None


def team_ref(team: Dict[str, Any]) -> TeamRef:
    return TeamRef(
        id=f"ncaam-{team.get('id')}",
        display_name=team.get("displayName") or team.get("shortDisplayName") or team.get("name") or "",
        abbreviation=team.get("abbreviation"),
        logo_url=_logo(team),
    )


def parse_event(event: Dict[str, Any], day: str) -> Optional[ScheduledGame]:
    comps = event.get("competitions") or []
    if not comps:
        return None
    comp = comps[0]
    sides = {c.get("homeAway"): c for c in comp.get("competitors") or []}
    if "home" not in sides or "away" not in sides:
        return None
    status_type = (comp.get("status") or event.get("status") or {}).get("type") or {}
    state = status_type.get("state") or status_type.get("name")
    home, away = sides["home"], sides["away"]
    # tournament games tagged via season type 3 (postseason)
    season_type = (event.get("season") or {}).get("type")
    return ScheduledGame(
        game_id=f"ncaam-{event.get('id')}",
        date=day,
        status=normalize_status(state, completed=status_type.get("completed")),
        home=team_ref(home.get("team") or {}),
        away=team_ref(away.get("team") or {}),
        home_score=safe_num(home.get("score")),
        away_score=safe_num(away.get("score")),
        neutral_site=bool(comp.get("neutralSite")),
        postseason=season_type == 3,
    )


class NCAAMAdapter(LeagueAdapter):
    """ESPN site v2 scoreboard, one request per day."""

    league = "ncaam"
    upstream = "espn"

    def __init__(self, base_url: str = ESPN_SITE_V2, **kwargs):
        super().__init__(**kwargs)
        self.url = f"{base_url.rstrip('/')}/{ESPN_NCAAM_PATH}/scoreboard"

    def _scoreboard(self, day: str, use_cache: bool = True) -> List[ScheduledGame]:
        params = dict(SCOREBOARD_PARAMS, dates=day.replace("-", ""))
        payload = self._get(self.url, params=params, use_cache=use_cache) or {}
        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected ESPN scoreboard payload for {day}")
        games = []
        for event in payload.get("events") or []:
            try:
                game = parse_event(event, day)
            except (AttributeError, TypeError, ValidationError) as e:
                raise UpstreamError(f"Malformed ESPN event on {day}: {e}") from e
            if game is not None:
                games.append(game)
        return games

    def get_schedule(self, league: str, day: str) -> List[ScheduledGame]:
        return self._scoreboard(day, use_cache=False)

    def get_history(self, league: str, start: str, end: str) -> List[GameResult]:
        results: List[GameResult] = []
        for day in iter_days(start, end):
            for game in self._scoreboard(day.isoformat()):
                if game.status != "Final":
                    continue
                results.append(GameResult(
                    date=game.date,
                    league="ncaam",
                    home_team_id=game.home.id,
                    away_team_id=game.away.id,
                    home_points=game.home_score,
                    away_points=game.away_score,
                ))
        logger.info("[NCAAM] history %s..%s: %d final games", start, end, len(results))
        return results
