from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Optional, Protocol, Set

from .analysis_client import AnalysisClient
from .errors import AnalyzerError, AnalyzerUnavailable, CaptureUnavailable
from .models import AnalysisLogEntry, Capture, Session, TriggerReason
from .storage import CaptureStore
from .triggers import CaptureGate


class FrameSource(Protocol):
    async def grab(self) -> bytes: ...


class CapturePipeline:
    """Runs capture-and-analyze cycles, one at a time.

    A request that arrives while a cycle is in flight is dropped: no capture,
    no log entry, no retry.
    """

    def __init__(
        self,
        frame_source: FrameSource,
        store: CaptureStore,
        client: AnalysisClient,
        log,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._frame_source = frame_source
        self._store = store
        self._client = client
        self._logger = log
        self._clock = clock
        self._gate = CaptureGate()
        self._active: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> bool:
        return self._gate.held

    def request(self, session: Session, reason: TriggerReason) -> Optional[asyncio.Task]:
        if not self._gate.try_acquire():
            self._logger.debug("Capture request (%s) dropped: analysis already in flight", reason.value)
            return None
        try:
            task = asyncio.get_running_loop().create_task(self._run(session, reason))
        except RuntimeError:
            self._gate.release()
            raise
        self._active = task
        self._tasks.add(task)
        # A task cancelled before its first step never enters _run's finally.
        task.add_done_callback(self._finish)
        return task

    def _finish(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._release(task)

    def _release(self, task: Optional[asyncio.Task]) -> None:
        if self._active is task:
            self._active = None
            self._gate.release()

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, session: Session, reason: TriggerReason) -> None:
        try:
            try:
                image_data = await self._frame_source.grab()
            except CaptureUnavailable as exc:
                self._logger.warning("Screenshot capture failed (%s): %s", reason.value, exc)
                self._record_capture_failure(session, reason, exc)
                return
            except Exception as exc:
                self._logger.exception("Unexpected error while grabbing a frame (%s)", reason.value)
                self._record_capture_failure(session, reason, exc)
                return

            if self._store.tracks(session.id):
                capture = self._store.append(image_data, reason)
            else:
                # The store already belongs to a newer session.
                capture = self._store.mint(image_data, reason)
                self._logger.info("Session %s has ended; capture #%s kept out of the live store", session.id, capture.id)
            session.captures.append(capture)
            self._logger.info("Captured screenshot #%s (%s, %s bytes)", capture.id, reason.value, len(image_data))

            try:
                analysis = await self._client.analyze(image_data, session.goal)
            except (AnalyzerUnavailable, AnalyzerError) as exc:
                self._logger.warning("AI analysis failed for capture #%s: %s", capture.id, exc)
                self._record_analysis_failure(session, capture, exc)
                return
            except Exception as exc:
                self._logger.exception("Unexpected error while analyzing capture #%s", capture.id)
                self._record_analysis_failure(session, capture, exc)
                return

            if not self._store.mark_analyzed(capture.id, analysis):
                capture.analysis = analysis
                capture.analyzed = True
            session.analysis_log.append(AnalysisLogEntry.success(capture, analysis))
            self._logger.info(
                "Capture #%s analyzed -> %s (productivity=%s, focus=%s)",
                capture.id,
                analysis.activity,
                analysis.productivity_score,
                analysis.focus_level,
            )
        finally:
            self._release(asyncio.current_task())

    def _record_capture_failure(self, session: Session, reason: TriggerReason, exc: Exception) -> None:
        session.analysis_log.append(
            AnalysisLogEntry.failure(
                timestamp=self._clock(),
                trigger=reason,
                activity="Capture Failed",
                message=f"Screenshot capture failed: {exc}",
                error=str(exc),
            )
        )

    def _record_analysis_failure(self, session: Session, capture: Capture, exc: Exception) -> None:
        session.analysis_log.append(
            AnalysisLogEntry.failure(
                timestamp=capture.captured_at,
                trigger=capture.trigger,
                activity="Analysis Failed",
                message=f"AI analysis failed: {exc}",
                error=str(exc),
                capture_id=capture.id,
            )
        )
