"""Hardware-event producer: global input hook callbacks → hardware reactions.

Hook callbacks must return fast, so each event is dispatched on a background
executor and the callback only answers one question: should the native event
be suppressed because its key or button is blocked.

After shutdown() the callbacks still return normally: events are dropped and
nothing is suppressed.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from reactionhub.capabilities.hardware_lib import BlockedInputs
from reactionhub.core.dispatcher import Dispatcher
from reactionhub.event_types import EventKind

logger = logging.getLogger(__name__)


class InputRouter:
    def __init__(self, dispatcher: Dispatcher, blocked: BlockedInputs, max_workers: int = 2) -> None:
        self._dispatcher = dispatcher
        self._blocked = blocked
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="input")
        self._lock = threading.Lock()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _submit(self, kind: EventKind, *args: object) -> bool:
        """Queue a dispatch. False once the router is shut down."""
        with self._lock:
            if self._stopped:
                return False
            future = self._executor.submit(self._dispatcher.dispatch, kind, *args)
        future.add_done_callback(self._done)
        return True

    def _done(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("hardware dispatch failed: %s", exc, exc_info=exc)

    # ─── Keyboard ─────────────────────────────────────────────────────────

    def on_key_down(self, key_code: int) -> bool:
        return self._submit(EventKind.KEY_DOWN, key_code) and self._blocked.is_key_blocked(key_code)

    def on_key_up(self, key_code: int) -> bool:
        return self._submit(EventKind.KEY_UP, key_code) and self._blocked.is_key_blocked(key_code)

    def on_key_typed(self, key_code: int) -> bool:
        return self._submit(EventKind.KEY_TYPE, key_code) and self._blocked.is_key_blocked(key_code)

    # ─── Mouse ────────────────────────────────────────────────────────────

    def on_mouse_down(self, button: int) -> bool:
        return self._submit(EventKind.MOUSE_DOWN, button) and self._blocked.is_button_blocked(button)

    def on_mouse_up(self, button: int) -> bool:
        return self._submit(EventKind.MOUSE_UP, button) and self._blocked.is_button_blocked(button)

    def on_mouse_click(self, button: int) -> bool:
        return self._submit(EventKind.MOUSE_CLICK, button) and self._blocked.is_button_blocked(button)

    def on_mouse_move(self, x: int, y: int) -> bool:
        self._submit(EventKind.MOUSE_MOVE, x, y)
        return False

    def on_mouse_wheel(self, delta: int, direction: str) -> bool:
        self._submit(EventKind.MOUSE_WHEEL, delta, direction)
        return False

    def shutdown(self, wait: bool = True) -> None:
        # Late hook callbacks see the flag, never a closed executor.
        with self._lock:
            self._stopped = True
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
