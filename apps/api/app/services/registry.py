# apps/api/app/services/registry.py
import logging
from functools import lru_cache

from apps.api.app.adapters.odds import OddsAPIMarketProvider
from apps.api.app.adapters.registry import build_adapters
from apps.api.app.core.cache import AsyncMemo, HostGate, make_cache
from apps.api.app.core.config import (
    CACHE_MAX_KEYS,
    CACHE_TTL_SECONDS,
    GRADING_STORE,
    HEAVY_CACHE_TTL_SECONDS,
    HOST_CONCURRENCY,
)
from apps.api.app.services.predictions import PredictionService
from apps.api.app.services.scoring import ScoringJob
from apps.api.app.services.store import GradingStore, InMemoryGradingStore, PostgresGradingStore

logger = logging.getLogger(__name__)

UPSTREAMS = ("balldontlie", "espn", "nhle", "the-odds-api")


@lru_cache(maxsize=1)
def get_prediction_service() -> PredictionService:
    raw_cache = make_cache(HEAVY_CACHE_TTL_SECONDS, CACHE_MAX_KEYS)
    return PredictionService(
        adapters=build_adapters(cache=raw_cache),
        market=OddsAPIMarketProvider(),
        memo=AsyncMemo(make_cache(CACHE_TTL_SECONDS, CACHE_MAX_KEYS)),
        gates={name: HostGate(HOST_CONCURRENCY) for name in UPSTREAMS},
    )


@lru_cache(maxsize=1)
def get_grading_store() -> GradingStore:
    if GRADING_STORE == "memory":
        return InMemoryGradingStore()
    store = PostgresGradingStore()
    if not store.ping():
        logger.warning("[Store] falling back to in-memory grading store")
        return InMemoryGradingStore()
    return store


def get_scoring_job() -> ScoringJob:
    return ScoringJob(get_prediction_service(), get_grading_store())
