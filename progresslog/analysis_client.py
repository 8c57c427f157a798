from __future__ import annotations

import asyncio
import inspect
from datetime import datetime
from typing import Awaitable, Callable, Union

from .errors import AnalyzerError
from .heuristics import extract_json_object, parse_free_text
from .models import Analysis

# (prompt, goal, image_data) -> raw analyzer text
AnalyzerTransport = Callable[[str, str, bytes], Union[str, Awaitable[str]]]

PROMPT = """Analyze this work session screenshot. The user's goal is: "{goal}".

Please provide analysis in this exact JSON format:
{{
  "productivityScore": <number 0-100>,
  "activity": "<activity type>",
  "insights": ["<insight 1>", "<insight 2>"],
  "focusLevel": <number 0-100>,
  "distractions": ["<distraction 1>", "<distraction 2>"],
  "goalAlignment": <number 0-100>,
  "recommendations": ["<recommendation 1>", "<recommendation 2>"],
  "applications": ["<app 1>", "<app 2>"],
  "timeOfDay": "<morning/afternoon/evening>",
  "workPattern": "<description>"
}}

Score based on:
- How focused the work appears
- Alignment with stated goal
- Evidence of productive activity
- Presence of distractions
- Application usage patterns
"""


def build_prompt(goal: str) -> str:
    return PROMPT.format(goal=(goal or "").replace('"', "'"))


class AnalysisClient:
    """Asks the external analyzer for one screenshot's productivity judgment.

    The analyzer is asked for JSON but may answer in prose; in that case the
    reply is mined heuristically. Either way every Analysis field is filled.
    Transport errors (``AnalyzerUnavailable``/``AnalyzerError``) propagate.
    """

    def __init__(self, analyzer: AnalyzerTransport, log, clock: Callable[[], datetime] = datetime.now):
        self._analyzer = analyzer
        self._logger = log
        self._clock = clock

    async def analyze(self, image_data: bytes, goal: str) -> Analysis:
        prompt = build_prompt(goal)
        text = await self._call(prompt, goal, image_data)
        if not isinstance(text, str):
            raise AnalyzerError(f"Analyzer returned {type(text).__name__} instead of text")

        now = self._clock()
        payload = extract_json_object(text)
        if payload is None:
            self._logger.warning("Analyzer reply had no JSON object; falling back to text heuristics")
            payload = parse_free_text(text, now)
        return Analysis.from_payload(payload, now)

    async def _call(self, prompt: str, goal: str, image_data: bytes):
        if inspect.iscoroutinefunction(self._analyzer) or inspect.iscoroutinefunction(
            getattr(self._analyzer, "__call__", None)
        ):
            return await self._analyzer(prompt, goal, image_data)
        return await asyncio.to_thread(self._analyzer, prompt, goal, image_data)
