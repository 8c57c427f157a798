"""Text mining for analyzer replies that carry no usable JSON object.

Everything here is pure: the same text and clock reading always give the same
payload, and nothing raises on odd input.
"""
from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import DEFAULT_ACTIVITY, DEFAULT_SCORE, DEFAULT_WORK_PATTERN
from .utils import time_of_day

ACTIVITIES = ("coding", "writing", "research", "communication", "design", "planning")
DISTRACTIONS = ("social media", "email", "notifications", "multiple tabs")
APPLICATIONS = ("chrome", "vscode", "slack", "word", "excel", "figma", "notion")
RECOMMENDATION_MARKERS = ("recommend", "suggest", "should")

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_JSON_SPAN_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first ``{...}`` JSON object found anywhere in ``text``."""
    if not text:
        return None

    match = _JSON_SPAN_RE.search(text)
    if match:
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            return payload

    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            payload, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            return payload
        start = text.find("{", start + 1)
    return None


def extract_score(text: str, keyword: str) -> Optional[int]:
    match = re.search(rf"{re.escape(keyword)}[:\s]*([0-9]{{1,3}})", text, re.IGNORECASE)
    return int(match.group(1)) if match else None


def extract_activity(text: str) -> str:
    lowered = text.lower()
    for activity in ACTIVITIES:
        if activity in lowered:
            return activity.capitalize()
    return DEFAULT_ACTIVITY


def split_sentences(text: str) -> List[str]:
    return _SENTENCE_SPLIT_RE.split(text)


def extract_insights(text: str, limit: int = 3) -> List[str]:
    sentences = [s.strip() for s in split_sentences(text) if len(s.strip()) > 10]
    return sentences[:limit]


def extract_recommendations(text: str, limit: int = 2) -> List[str]:
    found = []
    for sentence in split_sentences(text):
        lowered = sentence.lower()
        if any(marker in lowered for marker in RECOMMENDATION_MARKERS):
            found.append(sentence.strip())
    return found[:limit]


def _members_in(text: str, vocabulary) -> List[str]:
    lowered = text.lower()
    return [item for item in vocabulary if item in lowered]


def parse_free_text(text: str, now: datetime) -> Dict[str, Any]:
    """Build an analysis payload (camelCase keys) from free-form analyzer text.

    A score keyword with no number after it scores 50. That fallback is an
    arbitrary midpoint, not a calibrated value.
    """
    text = text or ""
    productivity = extract_score(text, "productivity")
    focus = extract_score(text, "focus")
    goal = extract_score(text, "goal")

    return {
        "productivityScore": DEFAULT_SCORE if productivity is None else productivity,
        "activity": extract_activity(text),
        "insights": extract_insights(text),
        "focusLevel": DEFAULT_SCORE if focus is None else focus,
        "distractions": _members_in(text, DISTRACTIONS),
        "goalAlignment": DEFAULT_SCORE if goal is None else goal,
        "recommendations": extract_recommendations(text),
        "applications": _members_in(text, APPLICATIONS),
        "timeOfDay": time_of_day(now.hour),
        "workPattern": DEFAULT_WORK_PATTERN,
    }
