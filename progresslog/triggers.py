from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from .models import CaptureStats, TriggerReason

ALLOWED_NAMED_KEYS = frozenset({"Backspace", "Delete", "Enter", "Tab", "Space"})
BLOCKING_MODIFIERS = frozenset({"ctrl", "alt", "meta"})


class Signal(str, Enum):
    TICK = "tick"
    CLICK = "click"
    KEY = "key"
    FOCUS_GAINED = "focus_gained"
    FOCUS_LOST = "focus_lost"
    TAB_HIDDEN = "tab_hidden"
    TAB_VISIBLE = "tab_visible"


_WINDOW_REASONS = {
    Signal.FOCUS_GAINED: TriggerReason.FOCUS_RETURN,
    Signal.FOCUS_LOST: TriggerReason.FOCUS_LEAVE,
    Signal.TAB_HIDDEN: TriggerReason.TAB_HIDDEN,
    Signal.TAB_VISIBLE: TriggerReason.TAB_VISIBLE,
}


@dataclass(frozen=True)
class TriggerEvent:
    signal: Signal
    key: Optional[str] = None
    modifiers: FrozenSet[str] = field(default_factory=frozenset)


def is_qualifying_key(key: Optional[str], modifiers: FrozenSet[str] = frozenset()) -> bool:
    if not key:
        return False
    if key in ALLOWED_NAMED_KEYS:
        return True
    return len(key) == 1 and not (modifiers & BLOCKING_MODIFIERS)


class TriggerPolicy:
    """Turns raw interaction signals into capture reasons.

    Counters on the session's ``CaptureStats`` move on every qualifying signal,
    whether or not the capture it asks for ends up running.
    """

    def __init__(self, keystroke_threshold: int = 20):
        if keystroke_threshold <= 0:
            raise ValueError("keystroke_threshold must be positive")
        self._threshold = keystroke_threshold
        self._pending_keys = 0

    @property
    def pending_keystrokes(self) -> int:
        return self._pending_keys

    def reset(self) -> None:
        self._pending_keys = 0

    def evaluate(self, event: TriggerEvent, stats: CaptureStats) -> Optional[TriggerReason]:
        if event.signal is Signal.TICK:
            return TriggerReason.PERIODIC

        if event.signal is Signal.CLICK:
            stats.clicks += 1
            return TriggerReason.CLICK

        if event.signal is Signal.KEY:
            if not is_qualifying_key(event.key, event.modifiers):
                return None
            stats.keystrokes += 1
            self._pending_keys += 1
            if self._pending_keys >= self._threshold:
                self._pending_keys = 0
                return TriggerReason.KEYSTROKES
            return None

        reason = _WINDOW_REASONS.get(event.signal)
        if reason is not None:
            stats.window_changes += 1
        return reason


class CaptureGate:
    """Single slot: at most one capture-and-analyze cycle runs at a time.

    ``try_acquire`` is called before the cycle is scheduled and ``release``
    from the cycle's ``finally`` block.
    """

    def __init__(self):
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        self._held = False
