from __future__ import annotations

import asyncio
import io

import pyautogui

from .errors import CaptureUnavailable

pyautogui.FAILSAFE = False


class ScreenFrameSource:
    """Frame source grabbing the primary screen and encoding it as JPEG."""

    def __init__(self, log, jpeg_quality: int = 90):
        self._logger = log
        self._quality = jpeg_quality

    async def grab(self) -> bytes:
        return await asyncio.to_thread(self._grab_sync)

    def _grab_sync(self) -> bytes:
        try:
            screenshot = pyautogui.screenshot()
        except Exception as exc:
            raise CaptureUnavailable(f"Screen grab failed: {exc}") from exc

        buffer = io.BytesIO()
        try:
            screenshot.convert("RGB").save(buffer, format="JPEG", quality=self._quality)
        except OSError as exc:
            raise CaptureUnavailable(f"Frame encoding failed: {exc}") from exc

        data = buffer.getvalue()
        self._logger.debug("Grabbed frame %sx%s (%s bytes)", screenshot.width, screenshot.height, len(data))
        return data
