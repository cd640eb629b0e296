import os
from typing import Dict, Tuple

from dotenv import load_dotenv

load_dotenv(override=True)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw not in (None, "") else default
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# --- Upstream providers ---------------------------------------------

BALLDONTLIE_BASE_URL = os.getenv("BALLDONTLIE_BASE_URL", "https://api.balldontlie.io/v1")
BALLDONTLIE_API_KEY = (os.getenv("BALLDONTLIE_API_KEY") or os.getenv("NBA_API_KEY") or "").strip()

ESPN_SITE_V2 = os.getenv("ESPN_SITE_V2", "https://site.api.espn.com/apis/site/v2/sports")
ESPN_NCAAM_PATH = "basketball/mens-college-basketball"

NHL_API_BASE = os.getenv("NHL_API_BASE", "https://api-web.nhle.com/v1")

ODDS_API_BASE = os.getenv("ODDS_API_BASE", "https://api.the-odds-api.com/v4")
ODDS_API_KEY = (os.getenv("ODDS_API_KEY") or os.getenv("SPORTS_ODDS_API_KEY") or "").strip()
ENABLE_MARKET_ODDS = _env_flag("ENABLE_MARKET_ODDS", bool(ODDS_API_KEY))
# Most odds providers paywall historical snapshots; past dates skip the market.
ALLOW_HISTORICAL_ODDS = _env_flag("ALLOW_HISTORICAL_ODDS", False)

# --- HTTP policy ----------------------------------------------------

HTTP_TIMEOUT_SECONDS = _env_float("HTTP_TIMEOUT_SECONDS", 15.0)
HTTP_MAX_RETRIES = _env_int("HTTP_MAX_RETRIES", 5)
HTTP_BACKOFF_SECONDS = _env_float("HTTP_BACKOFF_SECONDS", 0.65)
HOST_CONCURRENCY = _env_int("HOST_CONCURRENCY", 2)

# --- Caching --------------------------------------------------------

CACHE_TTL_SECONDS = _env_float("CACHE_TTL_SECONDS", 60.0)
HEAVY_CACHE_TTL_SECONDS = _env_float("HEAVY_CACHE_TTL_SECONDS", 20 * 60.0)
CACHE_MAX_KEYS = _env_int("CACHE_MAX_KEYS", 800)

# --- Leagues --------------------------------------------------------

SUPPORTED_LEAGUES: Tuple[str, ...] = ("nba", "nhl", "ncaam")

# league -> (default, min, max) history window in days
LEAGUE_WINDOW_DAYS: Dict[str, Tuple[int, int, int]] = {
    "nba": (14, 3, 30),
    "nhl": (60, 3, 120),
    "ncaam": (45, 14, 90),
}

# --- Persistence ----------------------------------------------------

POSTGRES_USER = os.getenv("POSTGRES_USER", "valueedge")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "valueedge")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
POSTGRES_DB = os.getenv("POSTGRES_DB", "valueedge")

# Raw DSN for psycopg (v3) direct connections
POSTGRES_DSN = os.getenv("DATABASE_URL") or (
    f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@"
    f"{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
)

PERFORMANCE_TABLE = os.getenv("PERFORMANCE_TABLE", "performance_daily")

# "postgres" writes grading summaries through psycopg, "memory" keeps them in-process
GRADING_STORE = os.getenv("GRADING_STORE", "postgres").strip().lower()

ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "").strip()
