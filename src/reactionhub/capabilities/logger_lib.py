"""loggerlib: script access to the host log.

Templates use named placeholders filled in order from args:

    loggerlib.loginfofmt("{User} redeemed {Reward}", ["alice", "hydrate"])
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from reactionhub.io.logging_setup import SCRIPTS_LOGGER

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def _arg_values(args: object) -> list[object]:
    if args is None:
        return []
    if isinstance(args, Mapping):
        return list(args.values())
    if isinstance(args, (list, tuple)):
        return list(args)
    return [args]


def render_template(template: str, args: object) -> str:
    """Fill {Name} placeholders positionally. Surplus placeholders stay as written."""
    values = iter(_arg_values(args))

    def _fill(match: re.Match) -> str:
        try:
            return str(next(values))
        except StopIteration:
            return match.group(0)

    return _PLACEHOLDER.sub(_fill, str(template))


class LoggerLib:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(SCRIPTS_LOGGER)

    def loginfo(self, message: object) -> None:
        self._logger.info("%s", message)

    def logdebug(self, message: object) -> None:
        self._logger.debug("%s", message)

    def logwarning(self, message: object) -> None:
        self._logger.warning("%s", message)

    def logerror(self, message: object) -> None:
        self._logger.error("%s", message)

    def loginfofmt(self, template: str, args: object = None) -> None:
        if self._logger.isEnabledFor(logging.INFO):
            self._logger.info("%s", render_template(template, args))

    def logdebugfmt(self, template: str, args: object = None) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug("%s", render_template(template, args))

    def logwarningfmt(self, template: str, args: object = None) -> None:
        self._logger.warning("%s", render_template(template, args))

    def logerrorfmt(self, template: str, args: object = None) -> None:
        self._logger.error("%s", render_template(template, args))
