"""Process-wide script interpreter.

Scripts are Python source. Each evaluation runs in its own namespace seeded
from the runtime's shared globals (the bound capability objects), so helper
names in one script never clobber another script's helpers. The values a
script "returns" are the value of its trailing expression statement:

    def greet(user, user_id):
        loggerlib.loginfo(f"welcome {user}")

    {"kind": "Follow", "oncall": greet, "cooldown": 5000}

// [LAW:locality-or-seam] ScriptValue is the only shape interpreter values take
// outside this module; swapping the interpreter means rewriting this file only.
// [LAW:single-enforcer] Every script exception becomes ScriptError here.
"""

from __future__ import annotations

import ast
import builtins
import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from reactionhub.errors import ScriptError

logger = logging.getLogger(__name__)

# Everything script code can raise that becomes a ScriptError. KeyboardInterrupt
# still reaches the host.
SCRIPT_FAILURES = (Exception, SystemExit, GeneratorExit)


@dataclass(frozen=True)
class ScriptValue:
    """Opaque wrapper around a value produced by script code."""

    value: object = None

    @property
    def is_nil(self) -> bool:
        return self.value is None

    @property
    def is_table(self) -> bool:
        return isinstance(self.value, Mapping)

    @property
    def is_callable(self) -> bool:
        return callable(self.value)

    def as_callable(self) -> Callable[..., object]:
        if not callable(self.value):
            raise TypeError(f"expected a callable, got {_type_name(self.value)}")
        return self.value

    def as_table(self) -> Mapping:
        if not isinstance(self.value, Mapping):
            raise TypeError(f"expected a table, got {_type_name(self.value)}")
        return self.value

    def as_str(self) -> str:
        if self.value is None:
            return ""
        return str(self.value)

    def as_int(self) -> int:
        if isinstance(self.value, bool):
            raise TypeError("expected an integer, got bool")
        if isinstance(self.value, int):
            return self.value
        if isinstance(self.value, float) and self.value.is_integer():
            return int(self.value)
        if isinstance(self.value, str) and self.value.strip().lstrip("-").isdigit():
            return int(self.value.strip())
        raise TypeError(f"expected an integer, got {_type_name(self.value)}")

    def get(self, key: str) -> ScriptValue:
        """Field lookup on a table; string keys match case-insensitively."""
        table = self.as_table()
        if key in table:
            return ScriptValue(table[key])
        folded = key.casefold()
        for candidate, item in table.items():
            if isinstance(candidate, str) and candidate.casefold() == folded:
                return ScriptValue(item)
        return NIL


NIL = ScriptValue(None)


def _type_name(value: object) -> str:
    if value is None:
        return "nil"
    return type(value).__name__


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def _to_values(value: object) -> list[ScriptValue]:
    if value is None:
        return []
    if isinstance(value, ScriptValue):
        return [value]
    return [ScriptValue(value)]


class ScriptRuntime:
    """One interpreter for the whole process.

    Stateless beyond the shared global namespace and whatever state scripts
    close over. Safe to call from many threads at once.
    """

    def __init__(self) -> None:
        self._globals: dict[str, object] = {}
        self._lock = threading.Lock()
        self._evaluated = False

    def bind(self, name: str, capability: object) -> None:
        """Install a named global visible to every script evaluated afterwards."""
        if not name.isidentifier():
            raise ValueError(f"invalid global name: {name!r}")
        with self._lock:
            if self._evaluated:
                logger.warning("binding %s after scripts already ran; earlier scripts will not see it", name)
            self._globals[name] = capability
        logger.debug("bound capability %s (%s)", name, type(capability).__name__)

    def globals(self) -> Mapping[str, object]:
        with self._lock:
            return dict(self._globals)

    def _new_namespace(self, origin: str) -> dict[str, object]:
        with self._lock:
            self._evaluated = True
            namespace = dict(self._globals)
        namespace["__builtins__"] = builtins
        namespace["__name__"] = f"reactionhub.script.{Path(origin).stem or 'anonymous'}"
        namespace["__file__"] = origin
        return namespace

    def evaluate(self, source: str, origin: str = "<script>") -> list[ScriptValue]:
        """Parse and run source top to bottom; return its trailing-expression value."""
        try:
            tree = ast.parse(source, filename=origin, mode="exec")
        except SyntaxError as e:
            raise ScriptError(f"{origin}:{e.lineno}: SyntaxError: {e.msg}", origin) from e

        trailing: ast.Expression | None = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            trailing = ast.Expression(body=tree.body.pop().value)

        namespace = self._new_namespace(origin)
        try:
            exec(compile(tree, origin, "exec"), namespace)
            if trailing is None:
                return []
            value = eval(compile(trailing, origin, "eval"), namespace)
        except ScriptError:
            raise
        except SCRIPT_FAILURES as e:
            raise ScriptError(_describe(e), origin) from e
        return _to_values(value)

    def evaluate_file(self, path: str | Path) -> list[ScriptValue]:
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ScriptError(f"cannot read {path}: {e}", str(path)) from e
        return self.evaluate(source, origin=str(path))

    def invoke(self, callback: object, *args: object) -> list[ScriptValue]:
        """Call a previously obtained callback value."""
        if isinstance(callback, ScriptValue):
            callback = callback.value
        if not callable(callback):
            raise ScriptError(f"attempt to call a {_type_name(callback)} value")
        try:
            value = callback(*args)
        except ScriptError:
            raise
        except SCRIPT_FAILURES as e:
            raise ScriptError(_describe(e), getattr(callback, "__qualname__", "<callback>")) from e
        return _to_values(value)
