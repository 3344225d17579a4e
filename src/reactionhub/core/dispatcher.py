"""Inbound surface for event producers (chat client, input hook, media, clips).

This module is a STABLE BOUNDARY. Producers hold a Dispatcher, never the
registry or catalog directly.
"""

from __future__ import annotations

from reactionhub.core.catalog import ScriptCatalog
from reactionhub.core.reaction import CallResult
from reactionhub.core.registry import ReactionRegistry
from reactionhub.event_types import EventKind


class Dispatcher:
    def __init__(self, registry: ReactionRegistry, catalog: ScriptCatalog) -> None:
        self._registry = registry
        self._catalog = catalog

    def dispatch(self, kind: EventKind, *args: object) -> dict[str, CallResult]:
        """Fan one event out to every reaction of kind."""
        return self._registry.dispatch(kind, *args)

    def dispatch_named(self, name: str, kind: EventKind, *args: object) -> CallResult | None:
        return self._registry.dispatch_named(name, kind, *args)

    def dispatch_command(
        self, name: str, user: str, user_id: str, args_text: str
    ) -> CallResult | None:
        """Route a chat command to the Command reaction of the same name.

        Unknown commands are ignored silently; only a registered Command
        reaction reaches dispatch_named.
        """
        folded = name.casefold()
        if not any(r.name.casefold() == folded for r in self._registry.get_kind(EventKind.COMMAND)):
            return None
        return self._registry.dispatch_named(name, EventKind.COMMAND, user, user_id, args_text)

    def call_script(self, name: str) -> CallResult:
        return self._catalog.call(name)
