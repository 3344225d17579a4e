"""Reaction registry: declaration parsing, CRUD, and dispatch fan-out.

// [LAW:one-source-of-truth] One name → one Reaction; reload is whole-object replace.
// [LAW:single-enforcer] parse_declaration is the sole declaration validation boundary.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from reactionhub.core.reaction import CallResult, Reaction, name_from_path
from reactionhub.core.script_runtime import SCRIPT_FAILURES, ScriptRuntime, ScriptValue
from reactionhub.errors import DeclarationError
from reactionhub.event_types import EventKind, parse_event_kind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Declaration:
    """Validated fields of a reaction table."""

    kind: EventKind
    oncall: Callable[..., object]
    onerror: Callable[..., object] | None
    cooldown_ms: int


def parse_declaration(declared: ScriptValue | Mapping) -> Declaration:
    """Validate a reaction table. Raises DeclarationError."""
    table = declared if isinstance(declared, ScriptValue) else ScriptValue(declared)
    if not table.is_table:
        raise DeclarationError(f"declaration must be a table, got {type(table.value).__name__}")

    raw_kind = table.get("kind")
    if raw_kind.is_nil:
        raise DeclarationError("missing 'kind'")
    kind = parse_event_kind(raw_kind.value)
    if kind is EventKind.NONE:
        raise DeclarationError(f"unknown kind {raw_kind.value!r}")

    oncall = table.get("oncall")
    if not oncall.is_callable:
        raise DeclarationError("'oncall' must be callable")

    onerror = table.get("onerror")
    if not onerror.is_nil and not onerror.is_callable:
        raise DeclarationError("'onerror' must be callable when present")

    raw_cooldown = table.get("cooldown")
    cooldown_ms = 0
    if not raw_cooldown.is_nil:
        try:
            cooldown_ms = raw_cooldown.as_int()
        except TypeError as e:
            raise DeclarationError(f"'cooldown' must be integer milliseconds: {e}") from e
        if cooldown_ms < 0:
            raise DeclarationError("'cooldown' must be >= 0")

    return Declaration(
        kind=kind,
        oncall=oncall.as_callable(),
        onerror=None if onerror.is_nil else onerror.as_callable(),
        cooldown_ms=cooldown_ms,
    )


def _key(name: str) -> str:
    return name.casefold()


class ReactionRegistry:
    """Thread-safe name → Reaction store with per-kind fan-out.

    Readers take a snapshot under the lock and never hold it while a reaction
    runs, so dispatch and reload do not block each other.
    """

    def __init__(
        self,
        runtime: ScriptRuntime,
        max_workers: int = 8,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._runtime = runtime
        self._reactions: dict[str, Reaction] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="reaction"
        )

    # ─── CRUD ─────────────────────────────────────────────────────────────

    def upsert(self, file_path: str | Path, declared: ScriptValue | Mapping) -> Reaction | None:
        """Register or replace the reaction for file_path. Never raises on bad input."""
        file_path = str(file_path)
        try:
            decl = parse_declaration(declared)
        except DeclarationError as e:
            logger.warning("skipping reaction %s: %s", Path(file_path).name, e)
            return None

        extra = {"clock": self._clock} if self._clock is not None else {}
        reaction = Reaction(
            file_path=file_path,
            kind=decl.kind,
            runtime=self._runtime,
            oncall=decl.oncall,
            onerror=decl.onerror,
            cooldown_ms=decl.cooldown_ms,
            **extra,
        )
        with self._lock:
            previous = self._reactions.get(_key(reaction.name))
            self._reactions[_key(reaction.name)] = reaction
        if previous is not None:
            logger.info("replaced reaction %s (%s -> %s)", reaction.name, previous.kind.display_name, reaction.kind.display_name)
        else:
            logger.info("registered reaction %s (%s)", reaction.name, reaction.kind.display_name)
        return reaction

    def remove(self, file_path: str | Path) -> bool:
        return self.remove_name(name_from_path(file_path))

    def remove_name(self, name: str) -> bool:
        with self._lock:
            removed = self._reactions.pop(_key(name), None)
        if removed is not None:
            logger.info("removed reaction %s", removed.name)
        return removed is not None

    def clear(self) -> None:
        with self._lock:
            self._reactions.clear()

    # ─── Queries ──────────────────────────────────────────────────────────

    def get(self, name: str) -> Reaction | None:
        with self._lock:
            return self._reactions.get(_key(name))

    def get_kind(self, kind: EventKind) -> list[Reaction]:
        with self._lock:
            return [r for r in self._reactions.values() if r.kind is kind]

    def all(self) -> list[Reaction]:
        with self._lock:
            return list(self._reactions.values())

    def names(self) -> list[str]:
        with self._lock:
            return [r.name for r in self._reactions.values()]

    def set_enabled(self, name: str, enabled: bool) -> bool:
        reaction = self.get(name)
        if reaction is None:
            return False
        reaction.enabled = bool(enabled)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._reactions)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    # ─── Dispatch ─────────────────────────────────────────────────────────

    def dispatch(self, kind: EventKind, *args: object) -> dict[str, CallResult]:
        """Call every reaction of kind independently; block until all finish.

        Pool workers never wait on a reaction's lock: a reaction still busy with
        an earlier event is called again on the producer's own thread.
        """
        reactions = self.get_kind(kind)
        if not reactions:
            return {}
        futures: list[tuple[Reaction, Future[CallResult | None]]] = [
            (reaction, self._executor.submit(reaction.try_call, *args)) for reaction in reactions
        ]
        results: dict[str, CallResult] = {}
        for reaction, future in futures:
            try:
                result = future.result()
                if result is None:
                    result = reaction.call(*args)
            except SCRIPT_FAILURES as e:
                # Reaction.call converts script failures; this is a host-side bug.
                logger.exception("reaction %s crashed outside script code", reaction.name)
                result = CallResult.failed(f"{type(e).__name__}: {e}")
            if not result.success:
                logger.warning("reaction %s (%s) failed: %s", reaction.name, kind.display_name, result.error_message)
            results[reaction.name] = result
        return results

    def dispatch_named(self, name: str, kind: EventKind, *args: object) -> CallResult | None:
        """Invoke one reaction by name, only if its kind matches the caller's."""
        reaction = self.get(name)
        if reaction is None:
            logger.warning("no reaction named %s", name)
            return None
        if reaction.kind is not kind:
            logger.warning(
                "reaction %s is %s, not %s; skipped",
                reaction.name,
                reaction.kind.display_name,
                kind.display_name,
            )
            return None
        result = reaction.call(*args)
        if not result.success:
            logger.warning("reaction %s failed: %s", reaction.name, result.error_message)
        return result

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=True)
