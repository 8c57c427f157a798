from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .aggregator import SessionAggregator
from .analysis_client import AnalysisClient
from .config import AppSettings
from .credentials import CREDENTIAL_PREFIX, validate_credential
from .errors import InvalidCredential
from .models import AnalysisLogEntry, Capture, CumulativeProgress, Session, SessionSummary
from .pipeline import CapturePipeline, FrameSource
from .storage import AnalysisLog, CaptureStore
from .triggers import Signal, TriggerEvent, TriggerPolicy

DEFAULT_GOAL = "Complete project documentation"


class SessionManager:
    """Owns the active recording session and everything tied to it.

    Trigger events come in through ``handle`` (or ``consume`` for a queue);
    the manager runs them through the trigger policy and the capture pipeline
    against an explicit ``Session`` handle. Closed sessions are kept in an
    in-memory history.
    """

    def __init__(
        self,
        settings: AppSettings,
        frame_source: FrameSource,
        client: AnalysisClient,
        log,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        monotonic: Callable[[], float] = time.monotonic,
        credential_prefix: str = CREDENTIAL_PREFIX,
    ):
        self._settings = settings
        self._logger = log
        self._clock = clock or (lambda: datetime.now(tz=settings.timezone))
        self._monotonic = monotonic
        self._credential_prefix = credential_prefix
        self._credential: Optional[str] = None

        self._policy = TriggerPolicy(settings.capture.keystroke_threshold)
        self._store = CaptureStore(self._clock, log)
        self._pipeline = CapturePipeline(frame_source, self._store, client, log, clock=self._clock)
        self._aggregator = SessionAggregator(settings.progress, log)

        self._session: Optional[Session] = None
        self._started_at_mono = 0.0
        self._ticker: Optional[asyncio.Task] = None
        self._history: List[Session] = []
        self._summary: Optional[SessionSummary] = None
        self._progress = CumulativeProgress()

    # Credential -----------------------------------------------------------

    def set_credential(self, value: str) -> None:
        self._credential = validate_credential(value, self._credential_prefix)

    @property
    def has_credential(self) -> bool:
        return self._credential is not None

    # Lifecycle ------------------------------------------------------------

    async def start(self, goal: Optional[str] = None) -> Session:
        if self._credential is None:
            raise InvalidCredential("A valid API key must be set before recording starts")
        if self._session is not None:
            raise RuntimeError("A session is already recording")

        self._session = Session(
            id=uuid.uuid4().hex[:12],
            started_at=self._clock(),
            goal=goal if goal is not None else DEFAULT_GOAL,
            analysis_log=AnalysisLog(),
        )
        self._store.reset(owner=self._session.id)
        self._policy.reset()
        self._started_at_mono = self._monotonic()
        self._ticker = asyncio.get_running_loop().create_task(self._tick_periodically())
        self._logger.info(
            "Session %s started: goal=%r interval=%ss",
            self._session.id,
            self._session.goal,
            self._settings.capture.interval_seconds,
        )
        return self._session

    async def stop(self) -> Session:
        session = self._session
        if session is None:
            raise RuntimeError("No session is recording")

        if self._ticker is not None:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None

        session.duration_seconds = int(self._monotonic() - self._started_at_mono)
        session.closed = True
        self._session = None

        summary = self._aggregator.summarize(session)
        session.summary = summary
        if summary is not None:
            self._summary = summary
            self._progress = self._aggregator.fold(self._progress, summary, session.duration_seconds)
            self._logger.info("Session %s closed: %s", session.id, summary.session_summary)
        else:
            self._logger.info("Session %s closed without a summary", session.id)

        self._history.append(session)
        if self._pipeline.in_flight:
            self._logger.info("An analysis is still in flight; its result will be recorded when it resolves")
        return session

    async def drain(self) -> None:
        await self._pipeline.drain()

    # Events ---------------------------------------------------------------

    def handle(self, event: TriggerEvent) -> Optional[asyncio.Task]:
        session = self._session
        if session is None:
            return None
        reason = self._policy.evaluate(event, session.stats)
        if reason is None:
            return None
        self._logger.debug("Trigger fired: %s", reason.value)
        return self._pipeline.request(session, reason)

    async def consume(self, channel: asyncio.Queue) -> None:
        """Feed events from ``channel`` until a ``None`` sentinel arrives."""
        while True:
            event = await channel.get()
            if event is None:
                return
            self.handle(event)

    def set_goal(self, goal: str) -> None:
        if self._session is not None:
            self._session.goal = goal
            self._logger.info("Goal updated: %r", goal)

    async def _tick_periodically(self) -> None:
        interval = self._settings.capture.interval_seconds
        while True:
            await asyncio.sleep(interval)
            self.handle(TriggerEvent(Signal.TICK))

    # Views ----------------------------------------------------------------

    @property
    def recording(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def analyzing(self) -> bool:
        return self._pipeline.in_flight

    @property
    def pending_keystrokes(self) -> int:
        return self._policy.pending_keystrokes

    @property
    def captures(self) -> List[Capture]:
        return self._store.snapshot()

    def recent_captures(self) -> List[Capture]:
        return self._store.recent(self._settings.capture.display_limit)

    @property
    def analysis_log(self) -> Tuple[AnalysisLogEntry, ...]:
        if self._session is not None:
            return self._session.analysis_log.entries
        if self._history:
            return self._history[-1].analysis_log.entries
        return ()

    @property
    def summary(self) -> Optional[SessionSummary]:
        return self._summary

    @property
    def progress(self) -> CumulativeProgress:
        return self._progress

    @property
    def history(self) -> Tuple[Session, ...]:
        return tuple(self._history)

    def recent_sessions(self, limit: int = 3) -> List[Session]:
        return self._history[-limit:] if limit > 0 else []
