from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from progresslog.config import (
    AppSettings,
    CaptureSettings,
    GeminiSettings,
    LoggingSettings,
    OpenAISettings,
    ProgressSettings,
)
from progresslog.errors import CaptureUnavailable

FIXED_NOW = datetime(2024, 5, 6, 10, 30, tzinfo=ZoneInfo("UTC"))

JSON_REPLY = """Here is the analysis:
{"productivityScore": 82, "activity": "Coding", "insights": ["Editor open on tests"],
 "focusLevel": 77, "distractions": [], "goalAlignment": 64,
 "recommendations": ["Commit more often"], "applications": ["vscode"],
 "timeOfDay": "morning", "workPattern": "Deep work"}
"""


def make_settings(**capture) -> AppSettings:
    return AppSettings(
        timezone=ZoneInfo("UTC"),
        backend="openai",
        capture=CaptureSettings(**capture),
        openai=OpenAISettings(api_key="sk-test"),
        gemini=GeminiSettings(api_key=None),
        progress=ProgressSettings(),
        logging=LoggingSettings(directory=None),
    )


def quiet_logger() -> logging.Logger:
    logger = logging.getLogger("progresslog.tests")
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


class FakeFrameSource:
    def __init__(self, frame: bytes = b"\xff\xd8frame", fail: bool = False):
        self.frame = frame
        self.fail = fail
        self.calls = 0

    async def grab(self) -> bytes:
        self.calls += 1
        if self.fail:
            raise CaptureUnavailable("display stream ended")
        return self.frame


class GatedFrameSource(FakeFrameSource):
    """Frame source whose grab blocks until the test releases it."""

    def __init__(self, frame: bytes = b"\xff\xd8frame"):
        super().__init__(frame)
        self.release = asyncio.Event()

    async def grab(self) -> bytes:
        self.calls += 1
        await self.release.wait()
        return self.frame


class ControlledAnalyzer:
    """Async analyzer transport that blocks until the test releases it."""

    def __init__(self, reply: str = JSON_REPLY):
        self.reply = reply
        self.release = asyncio.Event()
        self.calls = []

    async def __call__(self, prompt: str, goal: str, image_data: bytes) -> str:
        self.calls.append((prompt, goal, image_data))
        await self.release.wait()
        return self.reply
