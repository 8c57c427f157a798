from __future__ import annotations

import argparse
import asyncio
import json
import os
from pathlib import Path

from progresslog.analysis_client import AnalysisClient
from progresslog.backends import create_analyzer
from progresslog.config import get_settings
from progresslog.logging_utils import init_logger


def main() -> None:
    parser = argparse.ArgumentParser(description="Analyze a single screenshot against a goal")
    parser.add_argument("--image", required=True)
    parser.add_argument("--goal", default="Complete project documentation")
    parser.add_argument("--backend", choices=["openai", "gemini"], default=None)
    args = parser.parse_args()

    if args.backend:
        os.environ["ANALYZER_BACKEND"] = args.backend

    settings = get_settings()
    logger = init_logger("analyze_one", settings.logging.directory, settings.logging.level)

    client = AnalysisClient(create_analyzer(settings, logger), logger)
    image_data = Path(args.image).read_bytes()
    analysis = asyncio.run(client.analyze(image_data, args.goal))
    print(json.dumps(analysis.to_dict(), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
