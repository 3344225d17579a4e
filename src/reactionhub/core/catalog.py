"""Ad-hoc script catalog: scripts invoked by name, outside the event system.

Entries are not pre-parsed. Each call re-reads and re-runs the file, so edits
made after registration are picked up without a second reload path.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from reactionhub.core.reaction import CallResult, name_from_path
from reactionhub.core.script_runtime import NIL, ScriptRuntime
from reactionhub.errors import ScriptError

logger = logging.getLogger(__name__)


@dataclass
class CatalogScript:
    file_path: str
    runtime: ScriptRuntime = field(repr=False)
    enabled: bool = True
    name: str = field(init=False)

    def __post_init__(self) -> None:
        self.name = name_from_path(self.file_path)

    def call(self) -> CallResult:
        if not self.enabled:
            return CallResult.suppressed()
        try:
            values = self.runtime.evaluate_file(self.file_path)
        except ScriptError as e:
            return CallResult.failed(e.message)
        return CallResult(success=True, result=values[0] if values else NIL)


class ScriptCatalog:
    """Thread-safe name → CatalogScript store. Names compare case-insensitively."""

    def __init__(self, runtime: ScriptRuntime) -> None:
        self._runtime = runtime
        self._scripts: dict[str, CatalogScript] = {}
        self._lock = threading.Lock()

    def upsert(self, file_path: str | Path) -> CatalogScript:
        script = CatalogScript(file_path=str(file_path), runtime=self._runtime)
        with self._lock:
            previous = self._scripts.get(script.name.casefold())
            if previous is not None:
                # Presence-only reload: keep the operator's enabled toggle.
                script.enabled = previous.enabled
            self._scripts[script.name.casefold()] = script
        if previous is None:
            logger.info("registered script %s", script.name)
        return script

    def remove(self, file_path: str | Path) -> bool:
        return self.remove_name(name_from_path(file_path))

    def remove_name(self, name: str) -> bool:
        with self._lock:
            removed = self._scripts.pop(name.casefold(), None)
        if removed is not None:
            logger.info("removed script %s", removed.name)
        return removed is not None

    def get(self, name: str) -> CatalogScript | None:
        with self._lock:
            return self._scripts.get(name.casefold())

    def contains(self, name: str) -> bool:
        return self.get(name) is not None

    __contains__ = contains

    def keys(self) -> list[str]:
        with self._lock:
            return [s.name for s in self._scripts.values()]

    def set_enabled(self, name: str, enabled: bool) -> bool:
        script = self.get(name)
        if script is None:
            return False
        script.enabled = bool(enabled)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._scripts)

    def call(self, name: str) -> CallResult:
        script = self.get(name)
        if script is None:
            logger.warning("attempted to call missing script %s", name)
            return CallResult.failed(f"no script named {name}")
        result = script.call()
        if not result.success:
            logger.info("call to script %s failed: %s", script.name, result.error_message)
        return result
