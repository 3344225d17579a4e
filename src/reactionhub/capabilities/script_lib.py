"""scriptlib: lets one script list, call or drop catalog scripts."""

from __future__ import annotations

from reactionhub.core.catalog import ScriptCatalog


class ScriptLib:
    def __init__(self, catalog: ScriptCatalog) -> None:
        self._catalog = catalog

    def keys(self) -> list[str]:
        return sorted(self._catalog.keys(), key=str.casefold)

    def contains(self, name: str) -> bool:
        return self._catalog.contains(name)

    def remove(self, name: str) -> bool:
        return self._catalog.remove_name(name)

    def call(self, name: str) -> object:
        """Run a catalog script; returns its value, or None if it failed."""
        return self._catalog.call(name).result.value
