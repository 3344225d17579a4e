"""Hot-reload pipeline for reaction and catalog script files.

Keeps ReactionRegistry in sync with <configs>/reactions and ScriptCatalog in
sync with <configs>/scripts, without tearing down the ScriptRuntime.

Per path: Idle → ChangeDetected → Debouncing → Applying → Idle.
- create/modify restarts that path's debounce window; a burst collapses to one reload
- delete skips debounce and removes immediately
- rename arrives as delete + add
- catalog scripts are tracked by presence only; their content is read at call time

// [LAW:single-enforcer] notify() is the sole routing point for file events;
// the watch thread and producers that report renames both go through it.
// [LAW:locality-or-seam] watchfiles is touched only in _watch_loop.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import watchfiles
from watchfiles import Change

from reactionhub.core.catalog import ScriptCatalog
from reactionhub.core.registry import ReactionRegistry
from reactionhub.core.script_runtime import ScriptRuntime
from reactionhub.errors import ScriptError
from reactionhub.io.settings import HostConfig

logger = logging.getLogger(__name__)

# watchfiles groups raw notifications for this long before yielding a batch.
# The per-path debounce below is the real quiet period.
_WATCH_BATCH_MS = 50


@dataclass
class _PendingTimer:
    timer: threading.Timer
    cancelled: threading.Event

    def cancel(self) -> None:
        self.cancelled.set()
        self.timer.cancel()


class PathDebouncer:
    """Per-key trailing debounce on timer threads.

    A new schedule() for a key cancels the previous timer before starting a
    fresh one. Cancellation is cooperative: a timer that already woke up
    checks its own flag before doing any work.
    """

    def __init__(self, delay_s: float) -> None:
        self._delay_s = max(0.0, delay_s)
        self._pending: dict[str, _PendingTimer] = {}
        self._in_flight = 0
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)

    def schedule(self, key: str, action: Callable[[], object]) -> None:
        cancelled = threading.Event()
        timer = threading.Timer(self._delay_s, self._fire, args=(key, cancelled, action))
        timer.daemon = True
        timer.name = f"debounce:{os.path.basename(key)}"
        with self._lock:
            previous = self._pending.pop(key, None)
            if previous is not None:
                previous.cancel()
            self._pending[key] = _PendingTimer(timer, cancelled)
            timer.start()

    def cancel(self, key: str) -> bool:
        with self._lock:
            pending = self._pending.pop(key, None)
            if pending is not None:
                pending.cancel()
                self._idle.notify_all()
        return pending is not None

    def cancel_all(self) -> None:
        with self._lock:
            for pending in self._pending.values():
                pending.cancel()
            self._pending.clear()
            self._idle.notify_all()

    def pending_keys(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def _fire(self, key: str, cancelled: threading.Event, action: Callable[[], object]) -> None:
        with self._lock:
            current = self._pending.get(key)
            if cancelled.is_set() or current is None or current.cancelled is not cancelled:
                return
            del self._pending[key]
            self._in_flight += 1
        try:
            action()
        except Exception:
            logger.exception("debounced action for %s failed", key)
        finally:
            with self._lock:
                self._in_flight -= 1
                self._idle.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until nothing is pending or running. False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._idle:
            while self._pending or self._in_flight:
                if deadline is None:
                    self._idle.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._idle.wait(remaining)
        return True


def _change_order(item: tuple[Change, str]) -> tuple[int, str]:
    # Deletes first: a delete+add pair in one batch is a recreate.
    change, path = item
    return (0 if change == Change.deleted else 1, path)


class ReloadPipeline:
    """Watches two directory trees and applies changes to registry and catalog."""

    def __init__(
        self,
        runtime: ScriptRuntime,
        registry: ReactionRegistry,
        catalog: ScriptCatalog,
        reactions_dir: str | Path,
        scripts_dir: str | Path,
        *,
        debounce_ms: int = 250,
        read_attempts: int = 3,
        read_backoff_ms: int = 100,
        suffix: str = ".script",
        force_polling: bool = False,
    ) -> None:
        self._runtime = runtime
        self._registry = registry
        self._catalog = catalog
        self._reactions_dir = Path(reactions_dir).resolve()
        self._scripts_dir = Path(scripts_dir).resolve()
        self._read_attempts = max(1, read_attempts)
        self._read_backoff_s = max(0, read_backoff_ms) / 1000.0
        self._suffix = suffix
        self._force_polling = force_polling
        self._debouncer = PathDebouncer(debounce_ms / 1000.0)
        self._path_locks: dict[str, threading.Lock] = {}
        self._path_locks_guard = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_config(
        cls,
        config: HostConfig,
        runtime: ScriptRuntime,
        registry: ReactionRegistry,
        catalog: ScriptCatalog,
    ) -> ReloadPipeline:
        return cls(
            runtime,
            registry,
            catalog,
            config.reactions_dir,
            config.scripts_dir,
            debounce_ms=config.debounce_ms,
            read_attempts=config.read_attempts,
            read_backoff_ms=config.read_backoff_ms,
            suffix=config.script_suffix,
            force_polling=config.force_polling,
        )

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ─── Lifecycle ────────────────────────────────────────────────────────

    def start(self, watch: bool = True) -> None:
        """Load every existing file, then start watching.

        The sweep is synchronous: the registry is fully populated before the
        watch thread handles its first notification.
        """
        self._reactions_dir.mkdir(parents=True, exist_ok=True)
        self._scripts_dir.mkdir(parents=True, exist_ok=True)
        self.load_all()
        if not watch or self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._watch_loop, name="reload-watcher", daemon=True)
        self._thread.start()
        logger.info("watching %s and %s", self._reactions_dir, self._scripts_dir)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        self._debouncer.cancel_all()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("file watcher did not stop within %.1fs", timeout)

    def wait_idle(self, timeout: float | None = None) -> bool:
        return self._debouncer.wait_idle(timeout)

    def load_all(self) -> tuple[int, int]:
        """Synchronous sweep of both directories. Returns (reactions, scripts) loaded."""
        pattern = f"*{self._suffix}"
        loaded = sum(
            1 for path in sorted(self._reactions_dir.rglob(pattern)) if path.is_file() and self.reload_reaction(path)
        )
        scripts = 0
        for path in sorted(self._scripts_dir.rglob(pattern)):
            if path.is_file():
                self._catalog.upsert(path)
                scripts += 1
        logger.info("initial sweep: %d reaction(s), %d script(s)", loaded, scripts)
        return loaded, scripts

    # ─── Routing ──────────────────────────────────────────────────────────

    def _classify(self, path: Path) -> str | None:
        if path.suffix != self._suffix:
            return None
        if path.is_relative_to(self._reactions_dir):
            return "reaction"
        if path.is_relative_to(self._scripts_dir):
            return "script"
        return None

    def notify(self, change: Change, path: str | Path) -> None:
        """Route one file event. Never blocks on script evaluation."""
        path = Path(path).resolve()
        target = self._classify(path)
        if target is None:
            return
        key = str(path)

        if target == "script":
            if change == Change.deleted:
                self._catalog.remove(path)
            elif path.is_file():
                self._catalog.upsert(path)
            return

        if change == Change.deleted:
            logger.info("file deleted: %s", path.name)
            self._debouncer.cancel(key)
            self._registry.remove(path)
            with self._path_locks_guard:
                self._path_locks.pop(key, None)
            return
        self._debouncer.schedule(key, lambda: self.reload_reaction(path))

    def notify_rename(self, old_path: str | Path, new_path: str | Path) -> None:
        logger.info("file renamed: %s -> %s", Path(old_path).name, Path(new_path).name)
        self.notify(Change.deleted, old_path)
        self.notify(Change.added, new_path)

    # ─── Applying ─────────────────────────────────────────────────────────

    def _path_lock(self, path: Path) -> threading.Lock:
        with self._path_locks_guard:
            return self._path_locks.setdefault(str(path), threading.Lock())

    def _read_with_retry(self, path: Path) -> str | None:
        for attempt in range(1, self._read_attempts + 1):
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except UnicodeDecodeError as e:
                logger.warning("%s is not valid UTF-8: %s", path.name, e)
                return None
            except OSError as e:
                # Usually a writer that has not released the file yet.
                logger.debug("read attempt %d for %s failed: %s", attempt, path.name, e)
                if attempt < self._read_attempts:
                    time.sleep(self._read_backoff_s * attempt)
        logger.warning("giving up on %s after %d read attempt(s)", path.name, self._read_attempts)
        return None

    def reload_reaction(self, path: str | Path) -> bool:
        """Read, evaluate and register one reaction file. True if registered."""
        path = Path(path).resolve()
        with self._path_lock(path):
            if not path.is_file():
                return False
            source = self._read_with_retry(path)
            if source is None or not source.strip():
                logger.warning("file is empty or could not be read: %s", path)
                return False
            try:
                values = self._runtime.evaluate(source, origin=str(path))
            except ScriptError as e:
                logger.error("error evaluating %s: %s", path.name, e)
                return False
            if not values or not values[0].is_table:
                logger.warning("%s did not return a declaration table", path.name)
                return False
            if self._registry.upsert(path, values[0]) is None:
                return False
            # A delete that raced this load must win.
            if not path.exists():
                self._registry.remove(path)
                return False
            return True

    # ─── Watching ─────────────────────────────────────────────────────────

    def _watch_filter(self, change: Change, path: str) -> bool:
        return path.endswith(self._suffix)

    def _watch_loop(self) -> None:
        try:
            for changes in watchfiles.watch(
                self._reactions_dir,
                self._scripts_dir,
                watch_filter=self._watch_filter,
                stop_event=self._stop_event,
                debounce=_WATCH_BATCH_MS,
                step=_WATCH_BATCH_MS,
                force_polling=self._force_polling,
                poll_delay_ms=_WATCH_BATCH_MS,
            ):
                for change, raw_path in sorted(changes, key=_change_order):
                    try:
                        self.notify(change, raw_path)
                    except Exception:
                        logger.exception("failed to handle %s for %s", change.name, raw_path)
        except Exception:
            logger.exception("file watcher stopped unexpectedly")
