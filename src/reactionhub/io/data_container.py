"""JSON-file key/value store backing storagelib.

Values are kept as JSON-compatible Python data (dict, list, str, int, float,
bool). Every set() stores a detached copy made by a JSON round trip, so a
script that later mutates its table does not silently change stored data.

Saving an empty store deletes the file instead of writing `{}`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_SUFFIX_FORMAT = ".backup-%Y-%m-%d-%H-%M-%S"


def _validate_key(key: object) -> str:
    if not isinstance(key, str) or not key:
        raise ValueError("storage key must be a non-empty string")
    return key


def _detach(key: str, value: object) -> object:
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as e:
        raise ValueError(f"value for {key!r} is not JSON-serializable: {e}") from e


class DataContainer:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, object] = {}
        self._lock = threading.RLock()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.load()
        except ValueError as e:
            logger.warning("starting with empty storage: %s", e)

    @property
    def path(self) -> Path:
        return self._path

    # ─── Query ────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def contains(self, key: str) -> bool:
        key = _validate_key(key)
        with self._lock:
            return key in self._data

    __contains__ = contains

    def get(self, key: str, default: object = None) -> object:
        key = _validate_key(key)
        with self._lock:
            if key not in self._data:
                return default
            return _detach(key, self._data[key])

    # ─── Mutation ─────────────────────────────────────────────────────────

    def set(self, key: str, value: object) -> None:
        """Store value under key. None removes the key."""
        key = _validate_key(key)
        if value is None:
            self.remove(key)
            return
        detached = _detach(key, value)
        with self._lock:
            self._data[key] = detached

    def remove(self, key: str) -> bool:
        key = _validate_key(key)
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    # ─── File operations ──────────────────────────────────────────────────

    def load(self) -> None:
        """Replace in-memory contents with the file's. A missing file is a no-op.

        Raises ValueError if the file is unreadable or not a JSON object.
        """
        with self._lock:
            try:
                raw = self._path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return
            except OSError as e:
                raise ValueError(f"error reading {self._path}: {e}") from e
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValueError(f"invalid JSON in {self._path}: {e}") from e
            if not isinstance(data, dict):
                raise ValueError(f"{self._path}: top level is not an object")
            self._data = {k: v for k, v in data.items() if isinstance(k, str) and k.strip()}
        logger.debug("loaded %d key(s) from %s", len(self._data), self._path)

    def save(self) -> None:
        with self._lock:
            self._write(self._path)

    def backup(self, suffix: str | None = None) -> Path:
        """Write a copy next to the data file, named path + suffix."""
        suffix = suffix or datetime.now().strftime(BACKUP_SUFFIX_FORMAT)
        target = self._path.with_name(self._path.name + suffix)
        with self._lock:
            self._write(target)
        return target

    def _write(self, path: Path) -> None:
        if not self._data:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
