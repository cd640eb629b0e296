# apps/api/app/schemas/games.py
from typing import Literal, Optional

from apps.api.app.schemas.base import FrozenCamelModel

GameStatus = Literal["Scheduled", "InProgress", "Final"]


class TeamRef(FrozenCamelModel):
    id: str
    display_name: str
    abbreviation: Optional[str] = None
    logo_url: Optional[str] = None


class ScheduledGame(FrozenCamelModel):
    game_id: str
    date: str  # YYYY-MM-DD
    status: GameStatus = "Scheduled"
    home: TeamRef
    away: TeamRef
    home_score: Optional[float] = None
    away_score: Optional[float] = None
    neutral_site: bool = False
    postseason: bool = False


class GameResult(FrozenCamelModel):
    """A completed historical game. Points stay optional so bad provider rows can be filtered."""
    date: str
    league: str
    home_team_id: str
    away_team_id: str
    home_points: Optional[float] = None
    away_points: Optional[float] = None
