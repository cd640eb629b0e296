# apps/api/tests/test_adapters.py
from datetime import date

import pytest

from apps.api.app.adapters.nba import NBAAdapter, parse_game
from apps.api.app.adapters.ncaam import NCAAMAdapter, parse_event
from apps.api.app.adapters.nhl import NHLAdapter
from apps.api.app.adapters.odds import OddsAPIMarketProvider, parse_events
from apps.api.app.core.cache import make_cache
from apps.api.app.core.errors import ConfigError, UpstreamError
from apps.api.app.services.market import market_key


def _bdl_row(game_id, day, status="Final", home=("BOS", "Boston Celtics"), away=("DET", "Detroit Pistons"),
             hs=110, vs=100):
    return {
        "id": game_id,
        "date": day,
        "status": status,
        "postseason": False,
        "home_team": {"abbreviation": home[0], "full_name": home[1]},
        "visitor_team": {"abbreviation": away[0], "full_name": away[1]},
        "home_team_score": hs,
        "visitor_team_score": vs,
    }


class RecordingFetch:
    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def __call__(self, url, params=None, headers=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        return self.handler(url, params)


def test_nba_parse_game_ids():
    game = parse_game(_bdl_row(77, "2025-01-20T00:00:00.000Z", status="2025-01-20T00:30:00Z", hs=0, vs=0))
    assert game.game_id == "nba-77"
    assert game.date == "2025-01-20"
    assert game.status == "Scheduled"
    assert game.home.id == "nba-bos"
    assert game.away.display_name == "Detroit Pistons"


def test_nba_bad_row_is_upstream_error():
    with pytest.raises(UpstreamError):
        parse_game({"id": 1})


def test_nba_requires_api_key():
    adapter = NBAAdapter(api_key="", fetch=RecordingFetch(lambda u, p: {}))
    with pytest.raises(ConfigError):
        adapter.get_schedule("nba", "2025-01-20")


def test_nba_schedule_follows_cursor():
    pages = {
        None: {"data": [_bdl_row(1, "2025-01-20", status="1st Qtr")], "meta": {"next_cursor": 5}},
        5: {"data": [_bdl_row(2, "2025-01-20", status="Final")], "meta": {}},
    }

    def handler(url, params):
        cursor = dict(params).get("cursor")
        return pages[cursor]

    fetch = RecordingFetch(handler)
    games = NBAAdapter(api_key="k", fetch=fetch).get_schedule("nba", "2025-01-20")
    assert [g.game_id for g in games] == ["nba-1", "nba-2"]
    assert [g.status for g in games] == ["InProgress", "Final"]
    assert fetch.calls[0]["headers"] == {"Authorization": "k"}
    assert ("dates[]", "2025-01-20") in fetch.calls[0]["params"]


def test_nba_history_chunks_by_week_and_keeps_finals():
    def handler(url, params):
        days = [v for k, v in params if k == "dates[]"]
        return {"data": [_bdl_row(i, d) for i, d in enumerate(days)] + [_bdl_row(999, days[0], status="3rd Qtr")]}

    fetch = RecordingFetch(handler)
    results = NBAAdapter(api_key="k", fetch=fetch).get_history("nba", "2025-01-01", "2025-01-10")
    assert len(fetch.calls) == 2
    assert len(results) == 10
    assert results[0].home_team_id == "nba-bos"
    assert results[0].home_points == 110


def test_history_uses_raw_cache_but_schedule_does_not():
    fetch = RecordingFetch(lambda u, p: {"data": [_bdl_row(1, "2025-01-19")]})
    adapter = NBAAdapter(api_key="k", fetch=fetch, cache=make_cache(60, 10))
    adapter.get_history("nba", "2025-01-19", "2025-01-19")
    adapter.get_history("nba", "2025-01-19", "2025-01-19")
    assert len(fetch.calls) == 1
    adapter.get_schedule("nba", "2025-01-19")
    adapter.get_schedule("nba", "2025-01-19")
    assert len(fetch.calls) == 3


def _espn_event(event_id, state="post", neutral=False, logo=True):
    def competitor(side, team_id, name, score):
        team = {"id": team_id, "displayName": name, "abbreviation": name[:4].upper()}
        if logo:
            team["logo"] = f"https://logos.test/{team_id}.png"
        return {"homeAway": side, "team": team, "score": score}

    return {
        "id": event_id,
        "season": {"type": 2},
        "competitions": [{
            "neutralSite": neutral,
            "status": {"type": {"state": state, "completed": state == "post"}},
            "competitors": [competitor("home", "150", "Duke Blue Devils", "81"),
                            competitor("away", "153", "North Carolina Tar Heels", "77")],
        }],
    }


def test_espn_event_parsing():
    game = parse_event(_espn_event("401", neutral=True, logo=False), "2025-03-20")
    assert game.game_id == "ncaam-401"
    assert game.status == "Final"
    assert game.neutral_site is True
    assert game.home.id == "ncaam-150"
    assert game.home_score == 81.0
    assert game.home.logo_url == "https://a.espncdn.com/i/teamlogos/ncaa/500/150.png"


def test_espn_history_walks_each_day():
    fetch = RecordingFetch(lambda u, p: {"events": [_espn_event(p["dates"]), _espn_event("x" + p["dates"], "pre")]})
    results = NCAAMAdapter(fetch=fetch).get_history("ncaam", "2025-01-01", "2025-01-03")
    assert [c["params"]["dates"] for c in fetch.calls] == ["20250101", "20250102", "20250103"]
    assert len(results) == 3
    assert results[0].date == "2025-01-01"


def _nhl_week(days):
    return {
        "nextStartDate": None,
        "gameWeek": [
            {
                "date": d,
                "games": [{
                    "id": int(d.replace("-", "")),
                    "gameType": 2,
                    "gameState": state,
                    "homeTeam": {"abbrev": "TOR", "placeName": {"default": "Toronto"},
                                 "commonName": {"default": "Maple Leafs"}, "score": 4},
                    "awayTeam": {"abbrev": "MTL", "placeName": {"default": "Montréal"},
                                 "commonName": {"default": "Canadiens"}, "score": 2},
                }],
            }
            for d, state in days
        ],
    }


def test_nhl_schedule_picks_requested_day():
    fetch = RecordingFetch(lambda u, p: _nhl_week([("2025-01-19", "OFF"), ("2025-01-20", "FUT")]))
    games = NHLAdapter(fetch=fetch).get_schedule("nhl", "2025-01-20")
    assert len(games) == 1
    assert games[0].game_id == "nhl-20250120"
    assert games[0].status == "Scheduled"
    assert games[0].home.display_name == "Toronto Maple Leafs"
    assert games[0].home.id == "nhl-tor"


def test_nhl_history_steps_week_by_week():
    def handler(url, params):
        start = date.fromisoformat(url.rsplit("/", 1)[1])
        days = [(date.fromordinal(start.toordinal() + i).isoformat(), "FINAL") for i in range(7)]
        return _nhl_week(days)

    fetch = RecordingFetch(handler)
    results = NHLAdapter(fetch=fetch).get_history("nhl", "2025-01-01", "2025-01-10")
    assert len(fetch.calls) == 2
    assert len(results) == 10
    assert all(r.home_points == 4 for r in results)


def _odds_event(commence, home="Boston Celtics", away="Detroit Pistons"):
    return {
        "home_team": home,
        "away_team": away,
        "commence_time": commence,
        "bookmakers": [
            {"key": "bovada", "markets": [{"key": "h2h", "outcomes": [
                {"name": home, "price": -400}, {"name": away, "price": 300}]}]},
            {"key": "fanduel", "markets": [{"key": "h2h", "outcomes": [
                {"name": home, "price": -150}, {"name": away, "price": 130}]}]},
        ],
    }


def test_odds_parsing_prefers_known_books_and_eastern_dates():
    anchors = parse_events([
        _odds_event("2025-01-21T00:30:00Z"),  # 7:30pm ET on the 20th
        _odds_event("2025-01-21T23:00:00Z", home="New York Knicks", away="Chicago Bulls"),
    ], "2025-01-20")
    assert list(anchors) == [market_key("Boston Celtics", "Detroit Pistons")]
    anchor = anchors[market_key("Boston Celtics", "Detroit Pistons")]
    assert anchor.bookmaker == "fanduel"
    assert anchor.home_implied_prob == pytest.approx(0.6 / (0.6 + 100 / 230))


def test_odds_provider_gates_past_dates():
    fetch = RecordingFetch(lambda u, p: [])
    provider = OddsAPIMarketProvider(api_key="k", enabled=True, allow_historical=False,
                                     today=lambda: date(2025, 1, 21), fetch=fetch)
    assert provider.get_market_odds("nba", "2025-01-20") is None
    assert provider.get_market_odds("nhl", "2025-01-21") is None
    assert fetch.calls == []
    assert provider.get_market_odds("nba", "2025-01-21") == {}
    assert fetch.calls[0]["params"]["markets"] == "h2h"


def test_odds_provider_swallows_upstream_failure():
    def boom(url, params=None, headers=None):
        raise UpstreamError("down")

    provider = OddsAPIMarketProvider(api_key="k", enabled=True, today=lambda: date(2025, 1, 20), fetch=boom)
    assert provider.get_market_odds("nba", "2025-01-20") is None


def test_odds_provider_without_key_is_unavailable():
    provider = OddsAPIMarketProvider(api_key="", enabled=True, fetch=RecordingFetch(lambda u, p: []))
    assert provider.get_market_odds("nba", "2025-01-20") is None


def test_nba_null_team_is_upstream_error():
    row = _bdl_row(7, "2025-01-20")
    row["home_team"] = None
    with pytest.raises(UpstreamError):
        parse_game(row)


def test_espn_malformed_event_is_upstream_error():
    payload = {"events": [{"id": "9", "competitions": [{"competitors": [
        {"homeAway": "home", "team": "not-a-team"},
        {"homeAway": "away", "team": {"id": "2", "displayName": "Duke"}},
    ]}]}]}
    adapter = NCAAMAdapter(fetch=RecordingFetch(lambda u, p: payload))
    with pytest.raises(UpstreamError):
        adapter.get_schedule("ncaam", "2025-01-20")
