"""storagelib: persistent key/value storage shared by all scripts."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from reactionhub.io.data_container import DataContainer

logger = logging.getLogger(__name__)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class StorageLib:
    def __init__(self, container: DataContainer) -> None:
        self._container = container

    # ─── File operations ──────────────────────────────────────────────────

    def load(self) -> None:
        self._container.load()
        logger.debug("load: storage loaded")

    def save(self) -> None:
        self._container.save()
        logger.debug("save: storage saved")

    def backup(self, suffix: str | None = None) -> str:
        target = self._container.backup(suffix)
        logger.debug("backup: wrote %s", target)
        return str(target)

    # ─── Query ────────────────────────────────────────────────────────────

    def contains(self, key: str) -> bool:
        return self._container.contains(key)

    def count(self) -> int:
        return len(self._container)

    def keys(self) -> list[str]:
        return self._container.keys()

    def get(self, key: str) -> object:
        return self._container.get(key)

    def set(self, key: str, value: object) -> None:
        self._container.set(key, value)
        logger.debug("set: %s", key)

    def remove(self, key: str) -> bool:
        return self._container.remove(key)

    def clear(self) -> None:
        self._container.clear()
        logger.debug("clear: storage cleared")

    # ─── Typed accessors ──────────────────────────────────────────────────
    # Getters return None when the key is missing or holds another type.

    def gettable(self, key: str) -> dict | list | None:
        value = self._container.get(key)
        return value if isinstance(value, (dict, list)) else None

    def settable(self, key: str, table: object) -> None:
        if table is not None and not isinstance(table, (Mapping, list, tuple)):
            raise TypeError(f"settable expects a table, got {type(table).__name__}")
        self._container.set(key, dict(table) if isinstance(table, Mapping) else table)

    def getstring(self, key: str) -> str | None:
        value = self._container.get(key)
        return value if isinstance(value, str) else None

    def setstring(self, key: str, value: object) -> None:
        self._container.set(key, None if value is None else str(value))

    def getnumber(self, key: str) -> int | float | None:
        value = self._container.get(key)
        return value if _is_number(value) else None

    def setnumber(self, key: str, value: object) -> None:
        if value is not None and not _is_number(value):
            raise TypeError(f"setnumber expects a number, got {type(value).__name__}")
        self._container.set(key, value)

    def getbool(self, key: str) -> bool | None:
        value = self._container.get(key)
        return value if isinstance(value, bool) else None

    def setbool(self, key: str, value: object) -> None:
        self._container.set(key, None if value is None else bool(value))
