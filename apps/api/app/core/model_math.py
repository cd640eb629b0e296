# apps/api/app/core/model_math.py
from __future__ import annotations

import math
from typing import Any, Optional


def safe_num(value: Any) -> Optional[float]:
    """Coerce a provider value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def sigmoid(x: float) -> float:
    # split to avoid overflow on large magnitudes
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def shrink(observed: Optional[float], prior: float, n: int, k: float) -> float:
    """Pull an observed rate toward its prior: (n*x + k*prior) / (n + k)."""
    if observed is None or n <= 0:
        return prior
    return (n * observed + k * prior) / (n + k)


def fmt_signed(value: float, dp: int = 3, suffix: str = "") -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{dp}f}{suffix}"
