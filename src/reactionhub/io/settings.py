"""Host configuration: defaults < configs/settings.json < REACTIONHUB_* env < overrides.

Manages a JSON settings file next to the reactions/ and scripts/ directories.

This module is a STABLE BOUNDARY.
Import as: import reactionhub.io.settings
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

from reactionhub.errors import ConfigError

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.json"
ENV_PREFIX = "REACTIONHUB_"


@dataclass(frozen=True)
class HostConfig:
    """Resolved host configuration."""

    configs_dir: Path
    data_dir: Path
    debounce_ms: int = 250
    read_attempts: int = 3
    read_backoff_ms: int = 100
    dispatch_workers: int = 8
    force_polling: bool = False
    script_suffix: str = ".script"

    @property
    def reactions_dir(self) -> Path:
        return self.configs_dir / "reactions"

    @property
    def scripts_dir(self) -> Path:
        return self.configs_dir / "scripts"

    @property
    def settings_path(self) -> Path:
        return self.configs_dir / SETTINGS_FILE_NAME

    @property
    def storage_path(self) -> Path:
        return self.data_dir / "data.json"

    @property
    def points_db_path(self) -> Path:
        return self.data_dir / "points.db"


def _normalize_bool(value: object, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raw = str(value).strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{key}: expected a boolean, got {value!r}")


def _normalize_int(value: object, key: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key}: expected an integer, got {value!r}")
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key}: expected an integer, got {value!r}") from e
    if parsed < minimum:
        raise ConfigError(f"{key}: must be >= {minimum}, got {parsed}")
    return parsed


def _normalize_suffix(value: object, key: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        raise ConfigError(f"{key}: must not be empty")
    return raw if raw.startswith(".") else f".{raw}"


# [LAW:dataflow-not-control-flow] One normalizer per key; every source goes through it.
_NORMALIZERS = {
    "debounce_ms": lambda v, k: _normalize_int(v, k, 0),
    "read_attempts": lambda v, k: _normalize_int(v, k, 1),
    "read_backoff_ms": lambda v, k: _normalize_int(v, k, 0),
    "dispatch_workers": lambda v, k: _normalize_int(v, k, 1),
    "force_polling": _normalize_bool,
    "script_suffix": _normalize_suffix,
}


def load_settings(path: Path) -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("ignoring unreadable settings file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: top level is not an object", path)
        return {}
    return data


def save_settings(path: Path, data: Mapping[str, object]) -> None:
    """Atomic write of settings dict to JSON file.

    Creates parent directories if needed. Writes to temp file then renames
    to avoid partial writes on crash.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(dict(data), f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _env_values(environ: Mapping[str, str]) -> dict[str, object]:
    values: dict[str, object] = {}
    for key in _NORMALIZERS:
        env_key = ENV_PREFIX + key.upper()
        if env_key in environ:
            values[key] = environ[env_key]
    return values


def load_config(
    configs_dir: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> HostConfig:
    """Resolve HostConfig from all sources. Raises ConfigError on invalid values."""
    environ = os.environ if environ is None else environ
    root = Path(configs_dir or environ.get(ENV_PREFIX + "CONFIGS_DIR", "configs")).expanduser().resolve()
    raw_data_dir = environ.get(ENV_PREFIX + "DATA_DIR")
    data_dir = Path(raw_data_dir).expanduser().resolve() if raw_data_dir else root.parent / "data"

    config = HostConfig(configs_dir=root, data_dir=data_dir)
    file_values = load_settings(config.settings_path)
    if "data_dir" in file_values and not raw_data_dir:
        config = replace(config, data_dir=(root / str(file_values["data_dir"])).resolve())

    merged: dict[str, object] = {}
    for source in (file_values, _env_values(environ), dict(overrides or {})):
        for key, value in source.items():
            if key in _NORMALIZERS and value is not None:
                merged[key] = value

    known = {f.name for f in fields(HostConfig)}
    normalized = {
        key: _NORMALIZERS[key](value, key) for key, value in merged.items() if key in known
    }
    return replace(config, **normalized)
