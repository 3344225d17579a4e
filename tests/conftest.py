"""Pytest configuration and shared fixtures for reactionhub tests."""

import textwrap
from pathlib import Path

import pytest

from reactionhub.core.catalog import ScriptCatalog
from reactionhub.core.registry import ReactionRegistry
from reactionhub.core.script_runtime import ScriptRuntime


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_script(path: Path, source: str) -> Path:
    """Write dedented script source, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
    return path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runtime():
    return ScriptRuntime()


@pytest.fixture
def registry(runtime, clock):
    reg = ReactionRegistry(runtime, max_workers=4, clock=clock)
    yield reg
    reg.shutdown()


@pytest.fixture
def catalog(runtime):
    return ScriptCatalog(runtime)


@pytest.fixture
def configs_dir(tmp_path):
    root = tmp_path / "configs"
    (root / "reactions").mkdir(parents=True)
    (root / "scripts").mkdir(parents=True)
    return root


@pytest.fixture
def write():
    return write_script
