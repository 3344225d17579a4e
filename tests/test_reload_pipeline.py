"""Tests for ReloadPipeline: startup sweep, debounce, deletes, live watching.

Most tests drive notify() directly with a short debounce and wait_idle(),
so they do not depend on filesystem notification latency.
"""

import time
from pathlib import Path

import pytest
from watchfiles import Change

from reactionhub.app.reload_pipeline import PathDebouncer, ReloadPipeline
from reactionhub.event_types import EventKind

DEBOUNCE_MS = 80


def _reaction_source(tag: str, kind: str = "Follow") -> str:
    return f"""
    loads.append({tag!r})

    def on(*args):
        return {tag!r}

    {{"kind": {kind!r}, "oncall": on}}
    """


@pytest.fixture
def loads(runtime):
    seen = []
    runtime.bind("loads", seen)
    return seen


@pytest.fixture
def pipeline(runtime, registry, catalog, configs_dir, loads):
    p = ReloadPipeline(
        runtime,
        registry,
        catalog,
        configs_dir / "reactions",
        configs_dir / "scripts",
        debounce_ms=DEBOUNCE_MS,
        read_attempts=3,
        read_backoff_ms=0,
        force_polling=True,
    )
    yield p
    p.stop()


def _value(registry, kind=EventKind.FOLLOW):
    return {name: r.result.value for name, r in registry.dispatch(kind).items()}


class TestStartupSweep:
    def test_loads_existing_files(self, pipeline, registry, catalog, configs_dir, write):
        write(configs_dir / "reactions" / "welcome.script", _reaction_source("w"))
        write(configs_dir / "reactions" / "nested" / "raid.script", _reaction_source("r"))
        write(configs_dir / "scripts" / "reset.script", "1")

        pipeline.start(watch=False)

        assert sorted(registry.names()) == ["raid", "welcome"]
        assert catalog.contains("reset")

    def test_skips_bad_files(self, pipeline, registry, configs_dir, write, caplog):
        write(configs_dir / "reactions" / "good.script", _reaction_source("g"))
        write(configs_dir / "reactions" / "syntax.script", "def broken(:\n")
        write(configs_dir / "reactions" / "notable.script", "42")
        write(configs_dir / "reactions" / "nooncall.script", "{'kind': 'Follow'}")
        write(configs_dir / "reactions" / "empty.script", "   \n")
        write(configs_dir / "reactions" / "ignored.txt", _reaction_source("x"))

        with caplog.at_level("WARNING", logger="reactionhub"):
            pipeline.start(watch=False)

        assert registry.names() == ["good"]
        assert "did not return a declaration table" in caplog.text
        assert "error evaluating syntax.script" in caplog.text

    def test_exiting_file_does_not_abort_sweep(self, pipeline, registry, configs_dir, write, caplog):
        write(configs_dir / "reactions" / "a_quits.script", "import sys\nsys.exit(1)\n")
        write(configs_dir / "reactions" / "b_good.script", _reaction_source("g"))

        with caplog.at_level("WARNING", logger="reactionhub"):
            assert pipeline.load_all() == (1, 0)

        assert registry.names() == ["b_good"]
        assert "error evaluating a_quits.script: SystemExit: 1" in caplog.text

    def test_creates_missing_directories(self, runtime, registry, catalog, tmp_path):
        p = ReloadPipeline(runtime, registry, catalog, tmp_path / "r", tmp_path / "s")
        p.start(watch=False)
        assert (tmp_path / "r").is_dir() and (tmp_path / "s").is_dir()


class TestDebounce:
    def test_burst_collapses_to_one_reload_with_last_content(self, pipeline, registry, configs_dir, write, loads):
        pipeline.start(watch=False)
        path = configs_dir / "reactions" / "welcome.script"
        for tag in ("v1", "v2", "v3"):
            write(path, _reaction_source(tag))
            pipeline.notify(Change.modified, path)

        assert pipeline.wait_idle(5.0)
        assert loads == ["v3"]
        assert _value(registry) == {"welcome": "v3"}

    def test_separate_paths_debounce_independently(self, pipeline, registry, configs_dir, write, loads):
        pipeline.start(watch=False)
        for name in ("a", "b"):
            path = write(configs_dir / "reactions" / f"{name}.script", _reaction_source(name))
            pipeline.notify(Change.added, path)
        assert pipeline.wait_idle(5.0)
        assert sorted(loads) == ["a", "b"]

    def test_modify_replaces_kind(self, pipeline, registry, configs_dir, write):
        path = write(configs_dir / "reactions" / "ban.script", _reaction_source("1", "Reward"))
        pipeline.start(watch=False)
        write(path, _reaction_source("2", "Command"))
        pipeline.notify(Change.modified, path)
        assert pipeline.wait_idle(5.0)
        assert registry.get("ban").kind is EventKind.COMMAND

    def test_broken_edit_keeps_previous_reaction(self, pipeline, registry, configs_dir, write):
        path = write(configs_dir / "reactions" / "w.script", _reaction_source("ok"))
        pipeline.start(watch=False)
        write(path, "{'kind': 'Follow', 'oncall': 'not callable'}")
        pipeline.notify(Change.modified, path)
        assert pipeline.wait_idle(5.0)
        assert _value(registry) == {"w": "ok"}


class TestDelete:
    def test_delete_removes_immediately(self, pipeline, registry, configs_dir, write):
        path = write(configs_dir / "reactions" / "w.script", _reaction_source("w"))
        pipeline.start(watch=False)
        path.unlink()
        pipeline.notify(Change.deleted, path)
        # No wait: deletes bypass the debounce window.
        assert registry.get("w") is None

    def test_delete_forgets_path_lock(self, pipeline, configs_dir, write):
        pipeline.start(watch=False)
        for i in range(5):
            path = write(configs_dir / "reactions" / f"tmp{i}.script", _reaction_source(str(i)))
            pipeline.notify(Change.added, path)
        assert pipeline.wait_idle(5.0)
        assert len(pipeline._path_locks) == 5

        for i in range(5):
            path = configs_dir / "reactions" / f"tmp{i}.script"
            path.unlink()
            pipeline.notify(Change.deleted, path)
        assert pipeline._path_locks == {}

    def test_delete_cancels_pending_reload(self, pipeline, registry, configs_dir, write, loads):
        pipeline.start(watch=False)
        path = write(configs_dir / "reactions" / "w.script", _reaction_source("w"))
        pipeline.notify(Change.added, path)
        path.unlink()
        pipeline.notify(Change.deleted, path)
        assert pipeline.wait_idle(5.0)
        assert registry.get("w") is None
        assert loads == []

    def test_delete_and_recreate_within_window(self, pipeline, registry, configs_dir, write, loads):
        path = write(configs_dir / "reactions" / "w.script", _reaction_source("old"))
        pipeline.start(watch=False)
        path.unlink()
        pipeline.notify(Change.deleted, path)
        write(path, _reaction_source("new"))
        pipeline.notify(Change.added, path)

        assert pipeline.wait_idle(5.0)
        assert _value(registry) == {"w": "new"}
        assert loads == ["old", "new"]

    def test_rename(self, pipeline, registry, configs_dir, write):
        old = write(configs_dir / "reactions" / "old.script", _reaction_source("x"))
        pipeline.start(watch=False)
        new = configs_dir / "reactions" / "new.script"
        old.rename(new)
        pipeline.notify_rename(old, new)
        assert registry.get("old") is None
        assert pipeline.wait_idle(5.0)
        assert registry.get("new") is not None


class TestCatalogDirectory:
    def test_presence_only(self, pipeline, catalog, configs_dir, write, loads):
        pipeline.start(watch=False)
        path = write(configs_dir / "scripts" / "tool.script", "loads.append('ran')")
        pipeline.notify(Change.added, path)
        assert catalog.contains("tool")
        assert loads == []

        path.unlink()
        pipeline.notify(Change.deleted, path)
        assert not catalog.contains("tool")

    def test_foreign_paths_ignored(self, pipeline, registry, catalog, tmp_path, write):
        pipeline.start(watch=False)
        outside = write(tmp_path / "elsewhere" / "x.script", _reaction_source("x"))
        pipeline.notify(Change.added, outside)
        assert pipeline.wait_idle(5.0)
        assert len(registry) == 0 and len(catalog) == 0


class TestReadRetry:
    def test_transient_read_error_is_retried(self, pipeline, registry, configs_dir, write, monkeypatch):
        path = write(configs_dir / "reactions" / "w.script", _reaction_source("w"))
        real_read_text = Path.read_text
        failures = {"left": 2}

        def flaky(self, *args, **kwargs):
            if self == path and failures["left"] > 0:
                failures["left"] -= 1
                raise PermissionError("locked by writer")
            return real_read_text(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", flaky)
        assert pipeline.reload_reaction(path) is True
        assert failures["left"] == 0

    def test_gives_up_after_attempts(self, pipeline, registry, configs_dir, write, monkeypatch, caplog):
        path = write(configs_dir / "reactions" / "w.script", _reaction_source("w"))

        def always_locked(self, *args, **kwargs):
            raise PermissionError("locked")

        monkeypatch.setattr(Path, "read_text", always_locked)
        with caplog.at_level("WARNING", logger="reactionhub"):
            assert pipeline.reload_reaction(path) is False
        assert "giving up on w.script after 3 read attempt(s)" in caplog.text
        assert registry.get("w") is None


class TestPathDebouncer:
    def test_latest_action_wins(self):
        debouncer = PathDebouncer(0.05)
        fired = []
        debouncer.schedule("k", lambda: fired.append(1))
        debouncer.schedule("k", lambda: fired.append(2))
        assert debouncer.wait_idle(5.0)
        assert fired == [2]

    def test_cancel(self):
        debouncer = PathDebouncer(0.05)
        fired = []
        debouncer.schedule("k", lambda: fired.append(1))
        assert debouncer.cancel("k")
        assert debouncer.wait_idle(5.0)
        time.sleep(0.1)
        assert fired == []

    def test_failing_action_is_logged(self, caplog):
        debouncer = PathDebouncer(0.0)

        def boom():
            raise RuntimeError("nope")

        with caplog.at_level("ERROR", logger="reactionhub"):
            debouncer.schedule("k", boom)
            assert debouncer.wait_idle(5.0)
        assert "debounced action for k failed" in caplog.text


def test_live_watcher_picks_up_new_file(pipeline, registry, configs_dir, write):
    pipeline.start(watch=True)
    assert pipeline.running
    write(configs_dir / "reactions" / "live.script", _reaction_source("live"))

    deadline = time.monotonic() + 10.0
    while time.monotonic() < deadline and registry.get("live") is None:
        time.sleep(0.05)
    assert registry.get("live") is not None

    pipeline.stop()
    assert not pipeline.running
