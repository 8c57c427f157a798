from __future__ import annotations

import asyncio
import threading
from typing import Optional

from pynput import keyboard, mouse

from .triggers import Signal, TriggerEvent

_NAMED_KEYS = {
    keyboard.Key.backspace: "Backspace",
    keyboard.Key.delete: "Delete",
    keyboard.Key.enter: "Enter",
    keyboard.Key.tab: "Tab",
    keyboard.Key.space: "Space",
}

_MODIFIER_KEYS = {
    keyboard.Key.ctrl: "ctrl",
    keyboard.Key.ctrl_l: "ctrl",
    keyboard.Key.ctrl_r: "ctrl",
    keyboard.Key.alt: "alt",
    keyboard.Key.alt_l: "alt",
    keyboard.Key.alt_r: "alt",
    keyboard.Key.alt_gr: "alt",
    keyboard.Key.cmd: "meta",
    keyboard.Key.cmd_l: "meta",
    keyboard.Key.cmd_r: "meta",
}


class InputSignalListener:
    """Feeds OS-level clicks and key presses into a session's event channel.

    pynput calls back on its own threads; events are handed to the event loop
    with ``call_soon_threadsafe``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, channel: asyncio.Queue, log):
        self._loop = loop
        self._channel = channel
        self._logger = log
        self._held: set[str] = set()
        self._lock = threading.Lock()
        self._mouse_listener: Optional[mouse.Listener] = None
        self._keyboard_listener: Optional[keyboard.Listener] = None

    def start(self) -> None:
        if self._mouse_listener or self._keyboard_listener:
            return

        self._mouse_listener = mouse.Listener(on_click=self._on_click)
        self._keyboard_listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self._mouse_listener.start()
        self._keyboard_listener.start()
        self._logger.debug("Input listeners started")

    def stop(self) -> None:
        if self._mouse_listener:
            self._mouse_listener.stop()
            self._mouse_listener = None
        if self._keyboard_listener:
            self._keyboard_listener.stop()
            self._keyboard_listener = None

    def _on_click(self, x, y, button, pressed):
        if pressed:
            self._emit(TriggerEvent(Signal.CLICK))

    def _on_press(self, key):
        modifier = _MODIFIER_KEYS.get(key)
        if modifier:
            with self._lock:
                self._held.add(modifier)
            return

        name = _NAMED_KEYS.get(key)
        if name is None:
            name = getattr(key, "char", None)
        if not name:
            return

        with self._lock:
            modifiers = frozenset(self._held)
        self._emit(TriggerEvent(Signal.KEY, key=name, modifiers=modifiers))

    def _on_release(self, key):
        modifier = _MODIFIER_KEYS.get(key)
        if modifier:
            with self._lock:
                self._held.discard(modifier)

    def _emit(self, event: TriggerEvent) -> None:
        self._loop.call_soon_threadsafe(self._channel.put_nowait, event)
