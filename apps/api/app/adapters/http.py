# apps/api/app/adapters/http.py
from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, Optional

import requests

from apps.api.app.core.config import HTTP_BACKOFF_SECONDS, HTTP_MAX_RETRIES, HTTP_TIMEOUT_SECONDS
from apps.api.app.core.errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_RETRY_AFTER_SECONDS = 30.0


def backoff_delay(attempt: int, base: float = HTTP_BACKOFF_SECONDS, jitter: float = 0.25) -> float:
    """base * 2^attempt with +/- jitter."""
    delay = base * (2 ** attempt)
    return max(0.0, delay * (1.0 + random.uniform(-jitter, jitter)))


def _retry_after(resp: requests.Response) -> Optional[float]:
    raw = resp.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return min(float(raw), MAX_RETRY_AFTER_SECONDS)
    except ValueError:
        return None


def fetch_json(
    url: str,
    params: Any = None,
    headers: Optional[Dict[str, str]] = None,
    *,
    timeout: float = HTTP_TIMEOUT_SECONDS,
    retries: int = HTTP_MAX_RETRIES,
    backoff: float = HTTP_BACKOFF_SECONDS,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    GET a JSON document with a hard timeout and bounded retries.

    429 honours Retry-After, 5xx and network errors back off exponentially.
    Other 4xx responses fail immediately. Exhausting the retries raises UpstreamError.
    """
    client = session or requests
    last_error = "no attempts made"

    for attempt in range(retries + 1):
        try:
            resp = client.get(url, params=params, headers=headers, timeout=timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            last_error = f"{type(e).__name__}: {e}"
            if attempt >= retries:
                break
            wait = backoff_delay(attempt, backoff)
            logger.warning("[HTTP] %s on %s, retrying in %.2fs (attempt %d/%d)",
                           type(e).__name__, url, wait, attempt + 1, retries)
            sleep(wait)
            continue

        status = resp.status_code
        if status == 429 or 500 <= status < 600:
            last_error = f"HTTP {status}"
            if attempt >= retries:
                break
            wait = _retry_after(resp) if status == 429 else None
            if wait is None:
                wait = backoff_delay(attempt, backoff)
            logger.warning("[HTTP] %s from %s, sleeping %.2fs (attempt %d/%d)",
                           status, url, wait, attempt + 1, retries)
            sleep(wait)
            continue

        if status >= 400:
            raise UpstreamError(f"Upstream {status} for {url}: {resp.text[:300]}", status_code=status, url=url)

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from {url}: {e}", status_code=status, url=url) from e

    logger.error("[HTTP] giving up on %s after %d attempts (%s)", url, retries + 1, last_error)
    raise UpstreamError(f"Upstream failed after {retries + 1} attempts for {url} ({last_error})", url=url)
