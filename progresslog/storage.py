from __future__ import annotations

import itertools
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Tuple

from .models import Analysis, AnalysisLogEntry, Capture, TriggerReason


class CaptureStore:
    """Ordered captures of the live session.

    Ids keep counting across ``reset`` so a late result for a previous
    session's capture can never land on a new one. ``reset(owner)`` binds the
    store to one session; frames that arrive for any other session are minted
    but not tracked.
    """

    def __init__(self, clock: Callable[[], datetime], log=None):
        self._clock = clock
        self._logger = log
        self._ids = itertools.count(1)
        self._captures: List[Capture] = []
        self._owner: Optional[str] = None

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    def tracks(self, owner: Optional[str]) -> bool:
        return self._owner is None or self._owner == owner

    def mint(self, image_data: bytes, trigger: TriggerReason) -> Capture:
        return Capture(
            id=next(self._ids),
            captured_at=self._clock(),
            image_data=image_data,
            trigger=trigger,
        )

    def append(self, image_data: bytes, trigger: TriggerReason) -> Capture:
        capture = self.mint(image_data, trigger)
        self._captures.append(capture)
        return capture

    def mark_analyzed(self, capture_id: int, analysis: Analysis) -> bool:
        capture = self.get(capture_id)
        if capture is None:
            if self._logger:
                self._logger.debug("Capture %s no longer tracked; dropping its analysis", capture_id)
            return False
        capture.analysis = analysis
        capture.analyzed = True
        return True

    def get(self, capture_id: int) -> Optional[Capture]:
        for capture in reversed(self._captures):
            if capture.id == capture_id:
                return capture
        return None

    def reset(self, owner: Optional[str] = None) -> None:
        self._captures = []
        self._owner = owner

    def snapshot(self) -> List[Capture]:
        return list(self._captures)

    def recent(self, limit: int = 24) -> List[Capture]:
        if limit <= 0:
            return []
        return self._captures[-limit:]

    def __len__(self) -> int:
        return len(self._captures)

    def __iter__(self) -> Iterator[Capture]:
        return iter(list(self._captures))


class AnalysisLog:
    """Append-only record of every analysis attempt, in completion order."""

    def __init__(self):
        self._entries: List[AnalysisLogEntry] = []

    def append(self, entry: AnalysisLogEntry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> Tuple[AnalysisLogEntry, ...]:
        return tuple(self._entries)

    def valid(self) -> List[AnalysisLogEntry]:
        return [entry for entry in self._entries if not entry.is_error]

    def recent(self, limit: int = 5) -> List[AnalysisLogEntry]:
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AnalysisLogEntry]:
        return iter(tuple(self._entries))
