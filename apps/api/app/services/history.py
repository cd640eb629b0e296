# apps/api/app/services/history.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from apps.api.app.core.model_math import safe_num
from apps.api.app.schemas.games import GameResult

logger = logging.getLogger(__name__)

SHORT_WINDOW = 5
LONG_WINDOW = 10
DEFAULT_WINDOWS = (SHORT_WINDOW, LONG_WINDOW)

_ROW_COLUMNS = ["team_id", "date", "seq", "points_for", "points_against"]


@dataclass(frozen=True)
class WindowStats:
    played: int = 0
    win_pct: Optional[float] = None
    margin: Optional[float] = None


@dataclass(frozen=True)
class TeamRollingStats:
    team_id: str
    ok: bool = False
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    win_pct: Optional[float] = None
    margin_per_game: Optional[float] = None
    windows: Dict[int, WindowStats] = field(default_factory=dict)

    def recent(self, n: int) -> WindowStats:
        return self.windows.get(n, WindowStats())


def insufficient(team_id: str) -> TeamRollingStats:
    return TeamRollingStats(team_id=team_id, ok=False)


def _scored(game: GameResult) -> Optional[tuple]:
    home = safe_num(game.home_points)
    away = safe_num(game.away_points)
    if home is None or away is None:
        return None
    # (0, 0) is a provider placeholder, not a finished game
    if home == 0 and away == 0:
        return None
    return home, away


def team_rows(games: Iterable[GameResult], before: Optional[str] = None) -> pd.DataFrame:
    """One row per team per valid game (home and away perspective)."""
    rows = []
    for game in games:
        if before is not None and game.date >= before:
            continue
        scored = _scored(game)
        if scored is None:
            continue
        home_pts, away_pts = scored
        rows.append((game.home_team_id, game.date, len(rows), home_pts, away_pts))
        rows.append((game.away_team_id, game.date, len(rows), away_pts, home_pts))
    return pd.DataFrame(rows, columns=_ROW_COLUMNS)


def _window(diff: np.ndarray, n: int) -> WindowStats:
    part = diff[:n]
    if part.size == 0:
        return WindowStats()
    return WindowStats(
        played=int(part.size),
        win_pct=float((part > 0).sum()) / part.size,
        margin=float(part.mean()),
    )


def _summarize(team_id: str, group: pd.DataFrame, windows: Sequence[int]) -> TeamRollingStats:
    # group arrives most-recent-first
    diff = (group["points_for"] - group["points_against"]).to_numpy(dtype=float)
    played = int(diff.size)
    wins = int((diff > 0).sum())
    losses = int((diff < 0).sum())
    return TeamRollingStats(
        team_id=team_id,
        ok=True,
        games_played=played,
        wins=wins,
        losses=losses,
        ties=played - wins - losses,
        win_pct=wins / played,
        margin_per_game=float(diff.sum()) / played,
        windows={int(n): _window(diff, int(n)) for n in windows},
    )


def aggregate(
    games: Iterable[GameResult],
    windows: Sequence[int] = DEFAULT_WINDOWS,
    before: Optional[str] = None,
) -> Dict[str, TeamRollingStats]:
    """
    Roll historical results up into per-team stats.

    Rows with a non-numeric score or a (0, 0) score are dropped. Each team's
    rows are ordered by date descending, ties keeping input order, and each
    recent window takes the first n rows. Teams that appear only in dropped
    rows come back as not ok. `before` excludes games on or after that date.
    """
    games = list(games)
    seen: Dict[str, None] = {}
    for game in games:
        seen.setdefault(game.home_team_id, None)
        seen.setdefault(game.away_team_id, None)

    frame = team_rows(games, before=before)
    stats: Dict[str, TeamRollingStats] = {}
    if not frame.empty:
        frame = frame.sort_values(["date", "seq"], ascending=[False, True], kind="mergesort")
        for team_id, group in frame.groupby("team_id", sort=False):
            stats[str(team_id)] = _summarize(str(team_id), group, windows)

    for team_id in seen:
        if team_id not in stats:
            stats[team_id] = insufficient(team_id)

    logger.debug(
        "aggregated %d games into %d teams (%d usable rows)",
        len(games), len(stats), len(frame),
    )
    return stats


def stats_for(stats: Mapping[str, TeamRollingStats], team_id: str) -> TeamRollingStats:
    return stats.get(team_id) or insufficient(team_id)
