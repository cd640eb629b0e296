# apps/api/app/services/status.py
import re
from typing import Any, Optional

FINAL_WORDS = {"post", "completed", "complete", "off", "ended"}
LIVE_WORDS = {"in", "live", "crit", "in progress", "in_progress", "halftime", "end of period"}
_LIVE_PATTERN = re.compile(r"\b(qtr|quarter|half|period|ot|1st|2nd|3rd|4th)\b")


def normalize_status(raw: Any, completed: Optional[bool] = None) -> str:
    """Map provider status strings onto Scheduled / InProgress / Final."""
    if completed:
        return "Final"
    s = str(raw or "").strip().lower()
    if not s:
        return "Scheduled"
    if "final" in s or s in FINAL_WORDS:
        return "Final"
    if s in LIVE_WORDS or _LIVE_PATTERN.search(s):
        return "InProgress"
    return "Scheduled"


def is_final(raw: Any) -> bool:
    return normalize_status(raw) == "Final"
