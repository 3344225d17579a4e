"""Single-handler invocation policy: enabled flag, cooldown, error callback.

// [LAW:dataflow-not-control-flow] call() always returns CallResult; status says
// whether the callback ran, was suppressed, or failed. Nothing is raised.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from reactionhub.core.script_runtime import NIL, ScriptRuntime, ScriptValue
from reactionhub.errors import ScriptError
from reactionhub.event_types import EventKind

logger = logging.getLogger(__name__)

# 100ns units, the resolution of the ticks values scripts receive.
TICKS_PER_SECOND = 10_000_000


def unix_ticks() -> int:
    return time.time_ns() // 100


class CallStatus(Enum):
    RAN = "ran"
    SUPPRESSED = "suppressed"
    FAILED = "failed"


@dataclass
class CallResult:
    """Outcome of one reaction or catalog-script invocation."""

    success: bool = True
    error_message: str | None = None
    result: ScriptValue = NIL
    status: CallStatus = CallStatus.RAN

    @classmethod
    def suppressed(cls) -> CallResult:
        return cls(success=True, result=NIL, status=CallStatus.SUPPRESSED)

    @classmethod
    def failed(cls, message: str, result: ScriptValue = NIL) -> CallResult:
        return cls(success=False, error_message=message, result=result, status=CallStatus.FAILED)


def name_from_path(file_path: str | Path) -> str:
    return Path(file_path).stem


@dataclass(eq=False)
class Reaction:
    """A registered, cooldown-gated handler bound to one EventKind."""

    file_path: str
    kind: EventKind
    runtime: ScriptRuntime
    oncall: Callable[..., object]
    onerror: Callable[..., object] | None = None
    cooldown_ms: int = 0
    enabled: bool = True
    clock: Callable[[], float] = time.monotonic
    name: str = field(init=False)
    last_fired_at: float | None = field(init=False, default=None)
    _lock: threading.Lock = field(init=False, repr=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        if self.cooldown_ms < 0:
            raise ValueError("cooldown_ms must be >= 0")
        self.name = name_from_path(self.file_path)

    def is_cooling_down(self, now: float | None = None) -> bool:
        if self.cooldown_ms <= 0 or self.last_fired_at is None:
            return False
        now = self.clock() if now is None else now
        return now < self.last_fired_at + self.cooldown_ms / 1000.0

    def call(self, *args: object) -> CallResult:
        # [LAW:single-enforcer] One lock per reaction: the cooldown gate and the
        # invocation it guards are a single step for concurrent producers.
        with self._lock:
            return self._call_locked(args)

    def try_call(self, *args: object) -> CallResult | None:
        """Like call(), but returns None instead of waiting while another call runs."""
        if not self._lock.acquire(blocking=False):
            return None
        try:
            return self._call_locked(args)
        finally:
            self._lock.release()

    def _call_locked(self, args: tuple[object, ...]) -> CallResult:
        if not self.enabled or self.is_cooling_down():
            return CallResult.suppressed()
        try:
            values = self.runtime.invoke(self.oncall, *args)
        except ScriptError as e:
            return self._handle_failure(e.message)
        self.last_fired_at = self.clock()
        return CallResult(success=True, result=values[0] if values else NIL)

    def _handle_failure(self, message: str) -> CallResult:
        failed_at = unix_ticks()
        logger.debug("reaction %s failed: %s", self.name, message)
        if self.onerror is None:
            return CallResult.failed(message)
        try:
            values = self.runtime.invoke(self.onerror, self.name, message, failed_at)
        except ScriptError as e:
            logger.warning("error handler of reaction %s failed: %s", self.name, e.message)
            return CallResult.failed(message)
        return CallResult.failed(message, values[0] if values else NIL)
