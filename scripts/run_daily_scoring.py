#!/usr/bin/env python3
# scripts/run_daily_scoring.py
"""
Nightly grading run.

Rebuilds yesterday's slate (America/New_York) for each league, grades the
finished games and upserts one summary row per (league, date). Meant for cron.
"""
import sys, pathlib
# make repo root importable BEFORE any "from apps..." imports
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import argparse
import asyncio
import json
import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from apps.api.app.core.config import SUPPORTED_LEAGUES
from apps.api.app.services.registry import get_scoring_job
from apps.api.app.services.scoring import parse_leagues

EASTERN = ZoneInfo("America/New_York")

logger = logging.getLogger("run_daily_scoring")


def yesterday_eastern() -> str:
    return (datetime.now(EASTERN).date() - timedelta(days=1)).isoformat()


def main():
    """Main execution flow."""
    parser = argparse.ArgumentParser(description="Grade one date of picks and store the summary.")
    parser.add_argument("--date", default=None, help="YYYY-MM-DD (default: yesterday, US Eastern)")
    parser.add_argument("--leagues", default=",".join(SUPPORTED_LEAGUES), help="Comma-separated leagues")
    parser.add_argument("--model", default="v1", choices=["v1", "v2"])
    parser.add_argument("--no-force", action="store_true", help="Reuse a cached slate if one exists")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    day = args.date or yesterday_eastern()
    leagues = parse_leagues(args.leagues)
    logger.info("Scoring %s for %s (model=%s)", day, ",".join(leagues), args.model)

    job = get_scoring_job()
    result = asyncio.run(job.run(day, leagues, model=args.model, force=not args.no_force))
    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))

    failed = [r.league for r in result.results if not r.ok]
    if failed:
        logger.error("Scoring failed for: %s", ", ".join(failed))
        sys.exit(1)


if __name__ == "__main__":
    main()
