from __future__ import annotations

import argparse
import asyncio
import json
import os
import signal
import sys
from pathlib import Path

from progresslog.activity import InputSignalListener
from progresslog.analysis_client import AnalysisClient
from progresslog.backends import create_analyzer
from progresslog.capture import ScreenFrameSource
from progresslog.config import get_settings
from progresslog.credentials import credential_prefix, validate_credential
from progresslog.errors import InvalidCredential
from progresslog.logging_utils import init_logger
from progresslog.report import render_markdown, to_dict
from progresslog.session import DEFAULT_GOAL, SessionManager
from progresslog.utils import ensure_directory, timestamp_slug


def main() -> None:
    parser = argparse.ArgumentParser(description="Progress-Log tracker (capture, analyze, summarize one session)")
    parser.add_argument("--goal", default=DEFAULT_GOAL, help="What this session is meant to achieve")
    parser.add_argument(
        "--minutes",
        type=float,
        default=None,
        help="Stop automatically after this many minutes (default: run until Ctrl+C)",
    )
    parser.add_argument(
        "--backend",
        choices=["openai", "gemini"],
        default=None,
        help="Override ANALYZER_BACKEND",
    )
    parser.add_argument(
        "--report-dir",
        default=None,
        help="Also write the session report as Markdown and JSON into this directory",
    )
    args = parser.parse_args()

    if args.backend:
        os.environ["ANALYZER_BACKEND"] = args.backend

    settings = get_settings()
    logger = init_logger("tracker", settings.logging.directory, settings.logging.level)

    try:
        asyncio.run(_run(args, settings, logger))
    except InvalidCredential as exc:
        logger.error("%s", exc)
        sys.exit(2)


async def _run(args, settings, logger) -> None:
    prefix = credential_prefix(settings.backend)
    validate_credential(settings.api_key, prefix)
    analyzer = create_analyzer(settings, logger)
    client = AnalysisClient(analyzer, logger)
    frame_source = ScreenFrameSource(logger, jpeg_quality=settings.capture.jpeg_quality)
    manager = SessionManager(
        settings,
        frame_source,
        client,
        logger,
        credential_prefix=prefix,
    )
    manager.set_credential(settings.api_key or "")

    loop = asyncio.get_running_loop()
    channel: asyncio.Queue = asyncio.Queue()
    stop_requested = asyncio.Event()

    def _graceful_stop(signum, frame):
        logger.info("Received signal %s - stopping session", signum)
        loop.call_soon_threadsafe(stop_requested.set)

    signal.signal(signal.SIGINT, _graceful_stop)
    signal.signal(signal.SIGTERM, _graceful_stop)

    listener = InputSignalListener(loop, channel, logger)
    await manager.start(args.goal)
    consumer = loop.create_task(manager.consume(channel))
    listener.start()

    try:
        if args.minutes is not None:
            try:
                await asyncio.wait_for(stop_requested.wait(), timeout=args.minutes * 60)
            except asyncio.TimeoutError:
                logger.info("Session time limit reached (%.1f min)", args.minutes)
        else:
            await stop_requested.wait()
    finally:
        listener.stop()
        channel.put_nowait(None)
        await consumer
        session = await manager.stop()

    if manager.analyzing:
        logger.info("Waiting for the in-flight analysis to finish...")
        await manager.drain()

    report = render_markdown(session, manager.progress)
    print(report)

    if args.report_dir:
        report_dir = ensure_directory(Path(args.report_dir).resolve())
        slug = timestamp_slug(session.started_at)
        markdown_path = report_dir / f"session-report-{slug}.md"
        json_path = report_dir / f"session-report-{slug}.json"
        markdown_path.write_text(report, encoding="utf-8")
        json_path.write_text(json.dumps(to_dict(session, manager.progress), ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("Session report saved to %s", markdown_path)


if __name__ == "__main__":
    main()
