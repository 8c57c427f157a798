from __future__ import annotations

import io
import random
import re
import time
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as api_exceptions
from PIL import Image, UnidentifiedImageError

from .config import GeminiSettings
from .errors import AnalyzerError, AnalyzerUnavailable

_TRANSPORT_ERRORS = (
    api_exceptions.ServiceUnavailable,
    api_exceptions.DeadlineExceeded,
    api_exceptions.RetryError,
    ConnectionError,
    TimeoutError,
)


class GeminiVisionAnalyzer:
    """Analyzer transport backed by ``google.generativeai``."""

    def __init__(self, settings: GeminiSettings, log):
        if not settings.api_key:
            raise RuntimeError("GEMINI_API_KEY is required for the gemini analyzer backend")
        self._settings = settings
        self._logger = log
        genai.configure(api_key=settings.api_key)
        self._model = genai.GenerativeModel(settings.model)

    def __call__(self, prompt: str, goal: str, image_data: bytes) -> str:
        generation_config = {
            "max_output_tokens": self._settings.max_tokens,
            "temperature": self._settings.temperature,
        }
        try:
            image = Image.open(io.BytesIO(image_data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise AnalyzerError(f"Capture is not a readable image: {exc}") from exc

        with image:
            response = self._generate_with_retry(prompt=prompt, image=image, generation_config=generation_config)
        try:
            text = response.text
        except ValueError as exc:
            # Raised when the candidate was blocked or carries no text part.
            raise AnalyzerError(f"Gemini returned no text: {exc}") from exc
        return text or ""

    def _generate_with_retry(self, *, prompt: str, image: Image.Image, generation_config: dict[str, Any]):
        max_retries = self._settings.max_retries
        for attempt in range(max_retries + 1):
            try:
                return self._model.generate_content([prompt, image], generation_config=generation_config)
            except _TRANSPORT_ERRORS as exc:
                raise AnalyzerUnavailable(f"Gemini request failed: {exc}") from exc
            except Exception as exc:
                if not self._is_rate_limited(exc):
                    raise AnalyzerError(f"Gemini API error: {exc}") from exc
                if attempt >= max_retries:
                    raise AnalyzerUnavailable(f"Gemini rate limit persisted after {attempt + 1} attempts: {exc}") from exc

                wait_seconds = self._compute_retry_wait_seconds(exc, attempt)
                wait_seconds = max(0.0, wait_seconds + max(0.0, self._settings.retry_buffer_seconds))
                self._logger.warning(
                    "Gemini rate limit hit (attempt %s/%s). Waiting %.1fs then retrying...",
                    attempt + 1,
                    max_retries + 1,
                    wait_seconds,
                )
                time.sleep(wait_seconds)
        raise AnalyzerUnavailable("Gemini generate_content failed unexpectedly")

    def _is_rate_limited(self, exc: Exception) -> bool:
        if isinstance(exc, api_exceptions.ResourceExhausted):
            return True
        message = str(exc)
        return "429" in message or "Quota exceeded" in message or "rate limit" in message.lower()

    def _compute_retry_wait_seconds(self, exc: Exception, attempt: int) -> float:
        # Prefer the server-suggested delay when the error carries one.
        match = re.search(r"Please retry in\s+([0-9]+(?:\.[0-9]+)?)s", str(exc))
        if match:
            return float(match.group(1))
        base = min(60.0, (2.0 ** attempt))
        return base + random.uniform(0.0, 1.0)
