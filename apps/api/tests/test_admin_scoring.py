# apps/api/tests/test_admin_scoring.py
import asyncio

from apps.api.app.core import config
from apps.api.app.services.scoring import ScoringJob, parse_leagues
from apps.api.app.services.store import InMemoryGradingStore, PostgresGradingStore

from helpers import SLATE_DAY, FakeAdapter, make_service, nba_slate


def _finish_nba(adapters, home_score=110, away_score=100):
    adapters["nba"].schedule = nba_slate("Final", home_score, away_score).schedule


def test_scoring_run_grades_and_stores(client, adapters, grading_store):
    _finish_nba(adapters)
    r = client.post("/admin/scoring/run", params={"date": SLATE_DAY, "leagues": "nba,nhl", "force": 1})
    assert r.status_code == 200
    body = r.json()

    assert body["date"] == SLATE_DAY
    nba, nhl = body["results"]
    assert nba["ok"] is True
    assert nba["stored"] is True
    counts = nba["summary"]["counts"]
    assert counts["wins"] == 1
    assert counts["pass"] == 1
    assert counts["graded"] == 1
    assert nba["summary"]["metrics"]["winRate"] == 1.0
    assert [d["result"] for d in nba["summary"]["details"]] == ["WIN", "NOPICK"]

    # nhl has no games; still a valid, empty grading
    assert nhl["ok"] is True
    assert nhl["summary"]["counts"]["games"] == 0
    assert len(grading_store) == 2


def test_stored_summary_can_be_read_back(client, adapters):
    _finish_nba(adapters, 90, 100)
    client.post("/admin/scoring/run", params={"date": SLATE_DAY, "leagues": "nba"})

    r = client.get(f"/admin/scoring/nba/{SLATE_DAY}")
    assert r.status_code == 200
    assert r.json()["counts"]["losses"] == 1
    assert r.json()["metrics"]["winRate"] == 0.0

    missing = client.get("/admin/scoring/nba/2024-01-01")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


def test_unsupported_league_reported_per_league(client):
    r = client.post("/admin/scoring/run", params={"date": SLATE_DAY, "leagues": "nba,cricket"})
    results = r.json()["results"]
    assert results[0]["ok"] is True
    assert results[1] == {
        "league": "cricket", "ok": False, "stored": False, "summary": None,
        "error": "Unsupported league 'cricket'",
    }


def test_scoring_requires_valid_date(client):
    r = client.post("/admin/scoring/run", params={"date": "yesterday", "leagues": "nba"})
    assert r.status_code == 400


def test_admin_token_enforced(client, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_TOKEN", "s3cret")
    denied = client.post("/admin/scoring/run", params={"date": SLATE_DAY})
    assert denied.status_code == 401
    assert denied.json()["error"]["code"] == "UNAUTHORIZED"

    allowed = client.post("/admin/scoring/run", params={"date": SLATE_DAY}, headers={"X-Admin-Token": "s3cret"})
    assert allowed.status_code == 200


def test_store_failure_keeps_grading():
    class BrokenStore(InMemoryGradingStore):
        def upsert(self, summary):
            raise RuntimeError("db down")

    adapter = nba_slate("Final", 110, 100)
    job = ScoringJob(make_service({"nba": adapter}), BrokenStore())
    result = asyncio.run(job.run_league("nba", SLATE_DAY))
    assert result.ok is True
    assert result.stored is False
    assert "db down" in result.error
    assert result.summary.counts.wins == 1


def test_parse_leagues():
    assert parse_leagues(" NBA, nhl ,,nba") == ["nba", "nhl"]
    assert parse_leagues("") == []


def test_postgres_row_params_flatten_summary():
    adapter = nba_slate("Final", 110, 100)
    job = ScoringJob(make_service({"nba": adapter}), InMemoryGradingStore())
    summary = asyncio.run(job.run_league("nba", SLATE_DAY)).summary

    params = PostgresGradingStore.row_params(summary)
    assert params[:3] == (SLATE_DAY, "nba", "v1")
    assert params[3:10] == (2, 1, 2, 1, 0, 0, 1)
    assert params[10] == 1.0
    assert params[-1].obj["counts"]["pass"] == 1


def test_one_league_crash_does_not_abort_the_run():
    adapters = {
        "nba": FakeAdapter("nba", error=RuntimeError("chunked body truncated")),
        "nhl": FakeAdapter("nhl"),
    }
    store = InMemoryGradingStore()
    job = ScoringJob(make_service(adapters), store)
    response = asyncio.run(job.run(SLATE_DAY, ["nba", "nhl"], force=True))

    by_league = {r.league: r for r in response.results}
    assert by_league["nba"].ok is False
    assert "chunked body truncated" in by_league["nba"].error
    assert by_league["nhl"].ok is True
    assert store.get("nhl", SLATE_DAY) is not None


def test_scoring_run_survives_run_league_crash(monkeypatch):
    job = ScoringJob(make_service({"nhl": FakeAdapter("nhl")}), InMemoryGradingStore())
    original = job.run_league

    async def flaky(league, day, **kwargs):
        if league == "nba":
            raise AttributeError("'NoneType' object has no attribute 'get'")
        return await original(league, day, **kwargs)

    monkeypatch.setattr(job, "run_league", flaky)
    response = asyncio.run(job.run(SLATE_DAY, ["nba", "nhl"]))
    assert [r.ok for r in response.results] == [False, True]
    assert "AttributeError" in response.results[0].error
