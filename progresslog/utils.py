from __future__ import annotations

import math
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def timestamp_slug(ts: datetime) -> str:
    return ts.strftime("%Y%m%d-%H%M%S")


def time_of_day(hour: int) -> str:
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    return "evening"


def unique_ordered(items: Iterable[str]) -> List[str]:
    """Drop repeated strings, keeping the first occurrence of each."""
    seen: set[str] = set()
    result: List[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def coerce_str_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return [str(value).strip()] if str(value).strip() else []


def clamp_score(value: Any, default: int = 50) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return round_half_up(max(0.0, min(100.0, number)))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
