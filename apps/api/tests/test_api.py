# apps/api/tests/test_api.py
import pytest

from apps.api.app.core.errors import UpstreamError

from helpers import SLATE_DAY


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_leagues(client):
    body = client.get("/leagues").json()
    assert [l["league"] for l in body["leagues"]] == ["nba", "nhl", "ncaam"]
    assert body["leagues"][0]["windowDays"] == {"default": 14, "min": 3, "max": 30}


def test_predictions_camel_case_contract(client):
    r = client.get("/predictions", params={"league": "nba", "date": SLATE_DAY})
    assert r.status_code == 200
    body = r.json()

    assert body["meta"]["league"] == "nba"
    assert body["meta"]["windowDays"] == 14
    assert body["meta"]["noPickCount"] == 1
    game = body["games"][0]
    assert game["gameId"] == "nba-1"
    assert game["home"]["displayName"] == "Boston Celtics"
    assert game["market"]["recommendedTeamId"] == "nba-bos"
    assert game["market"]["pick"] == "home"
    assert len(game["why"]["bullets"]) <= 6
    assert body["games"][1]["market"]["recommendedTeamId"] is None


def test_league_path_alias(client):
    r = client.get("/predictions/nba", params={"date": SLATE_DAY})
    assert r.status_code == 200
    assert r.json()["meta"]["totalGames"] == 2


@pytest.mark.parametrize("raw, expected", [("abc", 14), ("999", 30), ("2", 3), ("10", 10)])
def test_window_days_is_clamped(client, raw, expected):
    r = client.get("/predictions", params={"league": "nba", "date": SLATE_DAY, "windowDays": raw})
    assert r.status_code == 200
    assert r.json()["meta"]["windowDays"] == expected


def test_bad_date_is_400(client):
    r = client.get("/predictions", params={"league": "nba", "date": "2025-13-40"})
    assert r.status_code == 400
    body = r.json()
    assert body["error"]["code"] == "BAD_REQUEST"
    assert "YYYY-MM-DD" in body["error"]["message"]


def test_unknown_league_is_422(client):
    r = client.get("/predictions", params={"league": "mlb", "date": SLATE_DAY})
    assert r.status_code == 422
    body = r.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["type"] == "validation_error"


def test_unknown_model_is_422(client):
    r = client.get("/predictions", params={"league": "nba", "date": SLATE_DAY, "model": "v7"})
    assert r.status_code == 422


def test_failing_league_does_not_affect_others(client, adapters):
    adapters["nhl"].error = UpstreamError("nhle timeout")

    nhl = client.get("/predictions", params={"league": "nhl", "date": SLATE_DAY})
    nba = client.get("/predictions", params={"league": "nba", "date": SLATE_DAY})

    assert nhl.status_code == 200
    assert nhl.json()["games"] == []
    assert "timeout" in nhl.json()["meta"]["error"]
    assert nba.json()["meta"]["error"] is None
    assert len(nba.json()["games"]) == 2


def test_root_redirects_to_docs(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code in (302, 307)
