from __future__ import annotations

import base64
from typing import Any

import requests

from .config import OpenAISettings
from .errors import AnalyzerError, AnalyzerUnavailable


class OpenAIVisionAnalyzer:
    """Analyzer transport for an OpenAI-compatible chat completions API.

    Endpoint used: POST {base_url}/chat/completions
    """

    def __init__(self, settings: OpenAISettings, log, session: requests.Session | None = None):
        if not settings.api_key:
            raise RuntimeError("OPENAI_API_KEY is required for the openai analyzer backend")
        self._settings = settings
        self._logger = log
        self._http = session or requests.Session()

    def __call__(self, prompt: str, goal: str, image_data: bytes) -> str:
        url = f"{self._settings.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": self._settings.model,
            "max_tokens": self._settings.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": _image_as_data_url(image_data)}},
                    ],
                }
            ],
        }

        self._logger.debug("Calling %s with model %s (goal=%r)", url, self._settings.model, goal)
        try:
            res = self._http.post(url, headers=headers, json=payload, timeout=self._settings.timeout_seconds)
        except requests.RequestException as exc:
            raise AnalyzerUnavailable(f"Analyzer request failed: {exc}") from exc

        if res.status_code >= 400:
            raise AnalyzerError(f"OpenAI API error: {res.status_code} - {res.text}")

        try:
            data = res.json()
        except ValueError as exc:
            raise AnalyzerError(f"Analyzer returned non-JSON body: {exc}") from exc
        if not isinstance(data, dict):
            raise AnalyzerError(f"Analyzer returned unexpected body: {type(data).__name__}")

        choices = data.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else {}
        message = choice.get("message") if isinstance(choice, dict) else None
        text = message.get("content") if isinstance(message, dict) else None
        if isinstance(text, list):
            # Some servers return structured content; join the text chunks.
            parts = []
            for item in text:
                if isinstance(item, dict) and item.get("type") == "text":
                    parts.append(str(item.get("text") or ""))
            text = "\n".join(p for p in parts if p)

        if not isinstance(text, str):
            raise AnalyzerError("Analyzer response carried no message content")
        return text


def _image_as_data_url(image_data: bytes) -> str:
    encoded = base64.b64encode(image_data).decode("ascii")
    mime = "image/png" if image_data[:8] == b"\x89PNG\r\n\x1a\n" else "image/jpeg"
    return f"data:{mime};base64,{encoded}"
