# apps/api/app/adapters/registry.py
from typing import Dict, Optional

from cachetools import TTLCache

from apps.api.app.adapters.base import LeagueAdapter
from apps.api.app.adapters.nba import NBAAdapter
from apps.api.app.adapters.ncaam import NCAAMAdapter
from apps.api.app.adapters.nhl import NHLAdapter

ADAPTERS = {
    "nba": NBAAdapter,
    "nhl": NHLAdapter,
    "ncaam": NCAAMAdapter,
}


def build_adapters(cache: Optional[TTLCache] = None) -> Dict[str, LeagueAdapter]:
    return {league: cls(cache=cache) for league, cls in ADAPTERS.items()}
