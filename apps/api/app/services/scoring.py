# apps/api/app/services/scoring.py
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List

from apps.api.app.core.config import SUPPORTED_LEAGUES
from apps.api.app.schemas.grading import LeagueScoringResult, ScoringRunResponse
from apps.api.app.services.predictions import PredictionService, SlateRequest, resolve_window
from apps.api.app.services.scorer import score
from apps.api.app.services.store import GradingStore

logger = logging.getLogger(__name__)


def parse_leagues(raw: str) -> List[str]:
    leagues = []
    for part in (raw or "").split(","):
        league = part.strip().lower()
        if league and league not in leagues:
            leagues.append(league)
    return leagues


class ScoringJob:
    """Rebuilds a finished slate, grades it, and hands the summary to the store."""

    def __init__(self, predictions: PredictionService, store: GradingStore):
        self.predictions = predictions
        self.store = store

    async def run_league(self, league: str, day: str, model: str = "v1", force: bool = False) -> LeagueScoringResult:
        if league not in SUPPORTED_LEAGUES:
            return LeagueScoringResult(league=league, ok=False, error=f"Unsupported league {league!r}")

        req = SlateRequest(league=league, date=day, window_days=resolve_window(league), model=model)
        slate = await self.predictions.build(req, force=force)
        if slate.meta.error:
            return LeagueScoringResult(league=league, ok=False, error=slate.meta.error)

        summary = score(league, day, slate.games, model=model)
        try:
            await asyncio.to_thread(self.store.upsert, summary)
            stored = True
        except Exception as e:
            # grading still succeeded; persistence is best-effort
            logger.warning("[Scoring] store upsert failed for %s %s: %s", league, day, e)
            return LeagueScoringResult(league=league, ok=True, stored=False, summary=summary,
                                       error=f"store: {e}")
        return LeagueScoringResult(league=league, ok=True, stored=stored, summary=summary)

    async def run(self, day: str, leagues: Iterable[str], model: str = "v1", force: bool = False) -> ScoringRunResponse:
        results = []
        for league in leagues:
            try:
                result = await self.run_league(league, day, model=model, force=force)
            except Exception as e:
                logger.exception("[Scoring] %s %s failed", league, day)
                result = LeagueScoringResult(league=league, ok=False, error=f"{type(e).__name__}: {e}")
            results.append(result)
        logger.info("[Scoring] %s: %d league(s), %d ok", day, len(results), sum(r.ok for r in results))
        return ScoringRunResponse(date=day, force=force, results=results)
