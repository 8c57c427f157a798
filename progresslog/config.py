from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

BACKENDS = ("openai", "gemini")


@dataclass(frozen=True)
class CaptureSettings:
    interval_seconds: int = 30
    keystroke_threshold: int = 20
    jpeg_quality: int = 90
    display_limit: int = 24


@dataclass(frozen=True)
class OpenAISettings:
    api_key: str | None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o"
    max_tokens: int = 500
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class GeminiSettings:
    api_key: str | None
    model: str = "gemini-1.5-flash"
    max_tokens: int = 1024
    temperature: float = 0.4
    max_retries: int = 5
    retry_buffer_seconds: float = 0.5


@dataclass(frozen=True)
class ProgressSettings:
    daily_target_seconds: int = 480
    weekly_target_seconds: int = 2400


@dataclass(frozen=True)
class LoggingSettings:
    directory: Path | None
    level: str = "INFO"


@dataclass(frozen=True)
class AppSettings:
    timezone: ZoneInfo
    backend: str
    capture: CaptureSettings
    openai: OpenAISettings
    gemini: GeminiSettings
    progress: ProgressSettings
    logging: LoggingSettings

    @property
    def api_key(self) -> str | None:
        if self.backend == "gemini":
            return self.gemini.api_key
        return self.openai.api_key


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    dotenv_path = Path(__file__).resolve().parents[1] / ".env"
    load_dotenv(dotenv_path=dotenv_path, override=False, encoding="utf-8-sig")

    timezone = ZoneInfo(os.getenv("TIMEZONE", "UTC"))

    backend = os.getenv("ANALYZER_BACKEND", "openai").strip().lower()
    if backend not in BACKENDS:
        raise RuntimeError(f"ANALYZER_BACKEND must be one of {', '.join(BACKENDS)}, got '{backend}'")

    capture = CaptureSettings(
        interval_seconds=int(os.getenv("CAPTURE_INTERVAL_SECONDS", "30")),
        keystroke_threshold=int(os.getenv("KEYSTROKE_THRESHOLD", "20")),
        jpeg_quality=int(os.getenv("CAPTURE_JPEG_QUALITY", "90")),
        display_limit=int(os.getenv("CAPTURE_DISPLAY_LIMIT", "24")),
    )
    if capture.interval_seconds <= 0 or capture.keystroke_threshold <= 0:
        raise RuntimeError("CAPTURE_INTERVAL_SECONDS and KEYSTROKE_THRESHOLD must be positive")

    openai = OpenAISettings(
        api_key=os.getenv("OPENAI_API_KEY") or None,
        base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
        model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", "500")),
        timeout_seconds=_as_float_or_none(os.getenv("OPENAI_TIMEOUT_SECONDS")),
    )

    gemini = GeminiSettings(
        api_key=os.getenv("GEMINI_API_KEY") or None,
        model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
        max_tokens=int(os.getenv("GEMINI_MAX_TOKENS", "1024")),
        temperature=float(os.getenv("GEMINI_TEMPERATURE", "0.4")),
        max_retries=int(os.getenv("GEMINI_MAX_RETRIES", "5")),
        retry_buffer_seconds=float(os.getenv("GEMINI_RETRY_BUFFER_SECONDS", "0.5")),
    )

    progress = ProgressSettings(
        daily_target_seconds=int(os.getenv("DAILY_TARGET_SECONDS", "480")),
        weekly_target_seconds=int(os.getenv("WEEKLY_TARGET_SECONDS", "2400")),
    )

    log_dir = os.getenv("LOG_DIR", "logs")
    logging_settings = LoggingSettings(
        directory=Path(log_dir).resolve() if log_dir.strip() else None,
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    return AppSettings(
        timezone=timezone,
        backend=backend,
        capture=capture,
        openai=openai,
        gemini=gemini,
        progress=progress,
        logging=logging_settings,
    )


def _as_float_or_none(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    value = float(raw)
    return value if value > 0 else None
