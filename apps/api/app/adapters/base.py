# apps/api/app/adapters/base.py
from __future__ import annotations

import threading
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterator, List, Optional

from cachetools import TTLCache

from apps.api.app.adapters.http import fetch_json
from apps.api.app.schemas.games import GameResult, ScheduledGame
from apps.api.app.schemas.odds import MarketAnchor

# adapters share one payload cache across worker threads; TTLCache is not thread-safe
_CACHE_LOCK = threading.Lock()


class ScheduleProvider:
    upstream: str = "unknown"

    def get_schedule(self, league: str, day: str) -> List[ScheduledGame]:
        raise NotImplementedError


class HistoryProvider:
    upstream: str = "unknown"

    def get_history(self, league: str, start: str, end: str) -> List[GameResult]:
        """Completed games with start <= date <= end (inclusive, YYYY-MM-DD)."""
        raise NotImplementedError


class MarketProvider:
    upstream: str = "unknown"

    def get_market_odds(self, league: str, day: str) -> Optional[Dict[str, MarketAnchor]]:
        """Map of market_key(home, away) -> MarketAnchor, or None when unavailable."""
        raise NotImplementedError


class LeagueAdapter(ScheduleProvider, HistoryProvider):
    league: str  # e.g., "nba", "nhl", "ncaam"

    def __init__(self, fetch: Callable[..., Any] = fetch_json, cache: Optional[TTLCache] = None):
        self.fetch = fetch
        self.cache = cache

    def _get(self, url: str, params: Any = None, headers: Optional[Dict[str, str]] = None,
             use_cache: bool = True) -> Any:
        """Fetch through the raw payload cache. Live slates pass use_cache=False."""
        key = (url, repr(params))
        if use_cache and self.cache is not None:
            with _CACHE_LOCK:
                hit = self.cache.get(key)
            if hit is not None:
                return hit
        payload = self.fetch(url, params=params, headers=headers)
        if use_cache and self.cache is not None and payload is not None:
            with _CACHE_LOCK:
                self.cache[key] = payload
        return payload


def iter_days(start: str, end: str) -> Iterator[date]:
    cur, last = date.fromisoformat(start), date.fromisoformat(end)
    while cur <= last:
        yield cur
        cur += timedelta(days=1)
