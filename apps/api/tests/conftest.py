import pytest
from starlette.testclient import TestClient

from apps.api.app.main import app
from apps.api.app.services.registry import get_grading_store, get_prediction_service, get_scoring_job
from apps.api.app.services.scoring import ScoringJob
from apps.api.app.services.store import InMemoryGradingStore

from helpers import FakeAdapter, make_service, nba_slate


@pytest.fixture
def adapters():
    return {
        "nba": nba_slate(),
        "nhl": FakeAdapter("nhl"),
        "ncaam": FakeAdapter("ncaam"),
    }


@pytest.fixture
def prediction_service(adapters):
    return make_service(adapters)


@pytest.fixture
def grading_store():
    return InMemoryGradingStore()


@pytest.fixture
def client(prediction_service, grading_store):
    """FastAPI test client wired to fake providers and an in-memory store"""
    app.dependency_overrides[get_prediction_service] = lambda: prediction_service
    app.dependency_overrides[get_grading_store] = lambda: grading_store
    app.dependency_overrides[get_scoring_job] = lambda: ScoringJob(prediction_service, grading_store)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
