# apps/api/app/adapters/odds.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from apps.api.app.adapters.base import MarketProvider
from apps.api.app.adapters.http import fetch_json
from apps.api.app.core.config import (
    ALLOW_HISTORICAL_ODDS,
    ENABLE_MARKET_ODDS,
    ODDS_API_BASE,
    ODDS_API_KEY,
)
from apps.api.app.core.errors import UpstreamError
from apps.api.app.schemas.odds import MarketAnchor
from apps.api.app.services.market import anchor_from_prices, market_key

logger = logging.getLogger(__name__)

EASTERN = ZoneInfo("America/New_York")
SPORT_KEYS = {"nba": "basketball_nba"}
PREFERRED_BOOKMAKERS = ["draftkings", "fanduel", "betmgm", "caesars", "pointsbetus"]


def _today_eastern() -> date:
    return datetime.now(EASTERN).date()


def _local_day(commence_time: str) -> Optional[str]:
    try:
        ts = datetime.fromisoformat(commence_time.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    return ts.astimezone(EASTERN).date().isoformat()


def _h2h_prices(bookmaker: Dict[str, Any], home: str, away: str):
    for market in bookmaker.get("markets") or []:
        if market.get("key") != "h2h":
            continue
        prices = {o.get("name"): o.get("price") for o in market.get("outcomes") or []}
        if prices.get(home) is not None and prices.get(away) is not None:
            return prices[home], prices[away]
    return None


def parse_events(events: List[Dict[str, Any]], day: str) -> Dict[str, MarketAnchor]:
    """One anchor per game on `day` (US Eastern), preferring the big US books."""
    anchors: Dict[str, MarketAnchor] = {}
    for event in events or []:
        home, away = event.get("home_team"), event.get("away_team")
        if not home or not away or _local_day(event.get("commence_time", "")) != day:
            continue
        books = sorted(
            event.get("bookmakers") or [],
            key=lambda b: (PREFERRED_BOOKMAKERS.index(b.get("key"))
                           if b.get("key") in PREFERRED_BOOKMAKERS else len(PREFERRED_BOOKMAKERS)),
        )
        for book in books:
            prices = _h2h_prices(book, home, away)
            if prices is None:
                continue
            anchor = anchor_from_prices(book.get("key") or "unknown", home, away, *prices)
            if anchor.home_implied_prob is not None:
                anchors[market_key(home, away)] = anchor
                break
    return anchors


class OddsAPIMarketProvider(MarketProvider):
    upstream = "the-odds-api"

    def __init__(
        self,
        api_key: str = ODDS_API_KEY,
        enabled: bool = ENABLE_MARKET_ODDS,
        allow_historical: bool = ALLOW_HISTORICAL_ODDS,
        base_url: str = ODDS_API_BASE,
        today: Callable[[], date] = _today_eastern,
        fetch: Callable[..., Any] = fetch_json,
    ):
        self.api_key = api_key
        self.enabled = enabled
        self.allow_historical = allow_historical
        self.base_url = base_url.rstrip("/")
        self.today = today
        self.fetch = fetch

    def get_market_odds(self, league: str, day: str) -> Optional[Dict[str, MarketAnchor]]:
        sport_key = SPORT_KEYS.get(league)
        if sport_key is None or not self.enabled or not self.api_key:
            return None
        if day < self.today().isoformat() and not self.allow_historical:
            logger.info("[Odds] skipping historical market lookup for %s %s", league, day)
            return None
        try:
            events = self.fetch(
                f"{self.base_url}/sports/{sport_key}/odds",
                params={
                    "apiKey": self.api_key,
                    "regions": "us",
                    "markets": "h2h",
                    "oddsFormat": "american",
                },
            )
        except UpstreamError as e:
            logger.warning("[Odds] market unavailable for %s %s: %s", league, day, e)
            return None
        anchors = parse_events(events if isinstance(events, list) else [], day)
        logger.info("[Odds] %d market anchors for %s %s", len(anchors), league, day)
        return anchors
