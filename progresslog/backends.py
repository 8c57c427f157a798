from __future__ import annotations

from .config import AppSettings
from .gemini_client import GeminiVisionAnalyzer
from .openai_client import OpenAIVisionAnalyzer


def create_analyzer(settings: AppSettings, log):
    if settings.backend == "gemini":
        log.info("Analyzer backend: gemini (%s)", settings.gemini.model)
        return GeminiVisionAnalyzer(settings.gemini, log)
    log.info("Analyzer backend: openai (%s @ %s)", settings.openai.model, settings.openai.base_url)
    return OpenAIVisionAnalyzer(settings.openai, log)
