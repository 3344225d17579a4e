"""Logging bootstrap for the reaction host.

Two streams share one handler pair: host diagnostics under ``reactionhub.*``
and script output under ``reactionhub.scripts`` (what loggerlib writes).
Each has its own level, and script lines carry their own tag and layout
in the console and the log file.

Environment:
    REACTIONHUB_LOG_LEVEL          host level (default INFO)
    REACTIONHUB_SCRIPTS_LOG_LEVEL  script level (default: host level)
    REACTIONHUB_LOG_FILE           explicit log file
    REACTIONHUB_LOG_DIR            directory for the default timestamped file

// [LAW:single-enforcer] Logger handler wiring is enforced in this module only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "reactionhub"
SCRIPTS_LOGGER = "reactionhub.scripts"

SCRIPT_TAG = "script"


@dataclass(frozen=True)
class LoggingRuntime:
    """Resolved logging configuration."""

    level_name: str
    level: int
    file_path: str
    scripts_level: int = logging.INFO


_RUNTIME: LoggingRuntime | None = None


def _parse_level(raw: str | None, default: int = logging.INFO) -> int:
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def is_script_record(record: logging.LogRecord) -> bool:
    return record.name == SCRIPTS_LOGGER or record.name.startswith(SCRIPTS_LOGGER + ".")


class ScriptAwareFormatter(logging.Formatter):
    """Formats host records with host_fmt and loggerlib records with script_fmt.

    Both formats may use ``%(source)s``: the logger name for host records,
    ``script`` for script records.
    """

    def __init__(self, host_fmt: str, script_fmt: str, datefmt: str | None = None) -> None:
        super().__init__(host_fmt, datefmt)
        self._script = logging.Formatter(script_fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        if is_script_record(record):
            record.source = SCRIPT_TAG
            return self._script.format(record)
        record.source = record.name
        return super().format(record)


def _default_log_path() -> str:
    log_dir = Path(
        os.environ.get("REACTIONHUB_LOG_DIR", os.path.expanduser("~/.local/share/reactionhub/logs"))
    )
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return str(log_dir / f"reactionhub-{ts}-{os.getpid()}.log")


def _make_stream_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        ScriptAwareFormatter(
            "[%(source)s] %(levelname)s %(message)s",
            "[%(source)s] %(message)s",
        )
    )
    return handler


def _make_file_handler(file_path: str) -> logging.Handler:
    handler = RotatingFileHandler(
        file_path,
        maxBytes=20 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(
        ScriptAwareFormatter(
            "%(asctime)s %(levelname)s %(source)s [%(threadName)s] %(message)s",
            "%(asctime)s %(levelname)s %(source)s [%(threadName)s] >> %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure() -> LoggingRuntime:
    """Install the console and rotating-file handlers on the reactionhub logger.

    Idempotent: repeated calls return the originally configured runtime.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level = _parse_level(os.environ.get("REACTIONHUB_LOG_LEVEL"))
    scripts_level = _parse_level(os.environ.get("REACTIONHUB_SCRIPTS_LOG_LEVEL"), default=level)
    file_path = os.environ.get("REACTIONHUB_LOG_FILE") or _default_log_path()
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    # Handlers stay at NOTSET; the two logger levels are the only gates.
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    logger.addHandler(_make_stream_handler())
    logger.addHandler(_make_file_handler(file_path))
    logging.getLogger(SCRIPTS_LOGGER).setLevel(scripts_level)

    # Keep third-party logging quiet unless it is warning+.
    root = logging.getLogger()
    if root.level > logging.WARNING:
        root.setLevel(logging.WARNING)
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(
        level_name=logging.getLevelName(level),
        level=level,
        file_path=file_path,
        scripts_level=scripts_level,
    )
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    """Return configured logging runtime, if configure() has run."""
    return _RUNTIME
