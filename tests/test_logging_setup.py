"""Tests for reactionhub.io.logging_setup."""

import logging

import pytest

import reactionhub.io.logging_setup as logging_setup


@pytest.fixture
def fresh_logging(monkeypatch, tmp_path):
    """Reset module state and the reactionhub loggers around each test."""
    root = logging.getLogger(logging_setup.ROOT_LOGGER)
    scripts = logging.getLogger(logging_setup.SCRIPTS_LOGGER)
    saved = (root.level, root.propagate, list(root.handlers), scripts.level)
    monkeypatch.setattr(logging_setup, "_RUNTIME", None)
    monkeypatch.setenv("REACTIONHUB_LOG_DIR", str(tmp_path / "logs"))
    for name in ("REACTIONHUB_LOG_FILE", "REACTIONHUB_LOG_LEVEL", "REACTIONHUB_SCRIPTS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield tmp_path
    for handler in root.handlers:
        if handler not in saved[2]:
            handler.close()
    root.setLevel(saved[0])
    root.propagate = saved[1]
    root.handlers[:] = saved[2]
    scripts.setLevel(saved[3])
    logging.captureWarnings(False)


def _log_text(runtime):
    for handler in logging.getLogger(logging_setup.ROOT_LOGGER).handlers:
        handler.flush()
    with open(runtime.file_path, encoding="utf-8") as f:
        return f.read()


def _record(name, msg="hello", level=logging.INFO):
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_configure_creates_log_file(fresh_logging):
    runtime = logging_setup.configure()
    assert runtime.level_name == "INFO"
    assert runtime.scripts_level == logging.INFO
    assert runtime.file_path.startswith(str(fresh_logging / "logs" / "reactionhub-"))

    logging.getLogger("reactionhub.core.registry").info("hello from registry")
    assert "hello from registry" in _log_text(runtime)


def test_configure_is_idempotent(fresh_logging):
    first = logging_setup.configure()
    second = logging_setup.configure()
    assert first is second
    assert logging_setup.get_runtime() is first
    assert len(logging.getLogger(logging_setup.ROOT_LOGGER).handlers) == 2


def test_level_and_file_from_env(fresh_logging, monkeypatch):
    target = fresh_logging / "explicit" / "host.log"
    monkeypatch.setenv("REACTIONHUB_LOG_LEVEL", "debug")
    monkeypatch.setenv("REACTIONHUB_LOG_FILE", str(target))
    runtime = logging_setup.configure()
    assert runtime.level == logging.DEBUG
    assert runtime.scripts_level == logging.DEBUG
    assert runtime.file_path == str(target)
    assert target.parent.is_dir()


def test_unknown_level_falls_back_to_info(fresh_logging, monkeypatch):
    monkeypatch.setenv("REACTIONHUB_LOG_LEVEL", "chatty")
    assert logging_setup.configure().level == logging.INFO


class TestScriptsStream:
    def test_scripts_level_is_independent(self, fresh_logging, monkeypatch):
        monkeypatch.setenv("REACTIONHUB_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("REACTIONHUB_SCRIPTS_LOG_LEVEL", "warning")
        runtime = logging_setup.configure()
        assert runtime.level == logging.DEBUG
        assert runtime.scripts_level == logging.WARNING

        logging.getLogger(logging_setup.SCRIPTS_LOGGER).info("chatty script line")
        logging.getLogger(logging_setup.SCRIPTS_LOGGER).warning("script warning")
        logging.getLogger("reactionhub.app.host").debug("host debug line")

        text = _log_text(runtime)
        assert "chatty script line" not in text
        assert "script warning" in text
        assert "host debug line" in text

    def test_scripts_can_be_louder_than_host(self, fresh_logging, monkeypatch):
        monkeypatch.setenv("REACTIONHUB_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("REACTIONHUB_SCRIPTS_LOG_LEVEL", "DEBUG")
        runtime = logging_setup.configure()

        logging.getLogger(logging_setup.SCRIPTS_LOGGER).debug("script detail")
        logging.getLogger("reactionhub.app.host").info("host info line")

        text = _log_text(runtime)
        assert "script detail" in text
        assert "host info line" not in text

    def test_file_lines_are_tagged_by_source(self, fresh_logging):
        runtime = logging_setup.configure()
        logging.getLogger(logging_setup.SCRIPTS_LOGGER).info("from loggerlib")
        logging.getLogger("reactionhub.core.registry").info("from registry")

        lines = _log_text(runtime).splitlines()
        script_line = next(line for line in lines if "from loggerlib" in line)
        host_line = next(line for line in lines if "from registry" in line)
        assert " script [" in script_line and ">> from loggerlib" in script_line
        assert " reactionhub.core.registry [" in host_line and ">>" not in host_line


class TestScriptAwareFormatter:
    def test_host_and_script_layouts(self):
        formatter = logging_setup.ScriptAwareFormatter("%(source)s|%(message)s", "<%(source)s> %(message)s")
        assert formatter.format(_record("reactionhub.app.host")) == "reactionhub.app.host|hello"
        assert formatter.format(_record(logging_setup.SCRIPTS_LOGGER)) == "<script> hello"

    def test_script_children_count_as_scripts(self):
        assert logging_setup.is_script_record(_record(logging_setup.SCRIPTS_LOGGER + ".welcome"))
        assert not logging_setup.is_script_record(_record("reactionhub.scriptsx"))

    def test_scripts_logger_is_in_hierarchy(self):
        assert logging_setup.SCRIPTS_LOGGER.startswith(logging_setup.ROOT_LOGGER + ".")
