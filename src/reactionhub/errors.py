"""Exception types raised inside the reaction engine.

None of these cross the dispatch boundary: Reaction and CatalogScript turn
them into CallResult values, the registry and pipeline log them.
"""

from __future__ import annotations


class ReactionHubError(Exception):
    """Base class for engine errors."""


class ScriptError(ReactionHubError):
    """Parse or runtime failure inside script code."""

    def __init__(self, message: str, origin: str = "<script>") -> None:
        super().__init__(message)
        self.message = message
        self.origin = origin

    def __str__(self) -> str:
        return self.message


class DeclarationError(ReactionHubError):
    """A reaction file returned a table that is not a valid declaration."""


class ConfigError(ReactionHubError):
    """Invalid host configuration value."""
