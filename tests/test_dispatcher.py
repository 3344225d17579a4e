"""Tests for Dispatcher: producer façade and chat-command routing."""

import pytest

from reactionhub.core.dispatcher import Dispatcher
from reactionhub.event_types import EventKind


@pytest.fixture
def dispatcher(registry, catalog):
    return Dispatcher(registry, catalog)


def test_dispatch_forwards_to_registry(dispatcher, registry):
    registry.upsert("/c/reactions/w.script", {"kind": "Follow", "oncall": lambda u, i: u})
    results = dispatcher.dispatch(EventKind.FOLLOW, "alice", "1")
    assert results["w"].result.value == "alice"


def test_command_routes_by_name(dispatcher, registry):
    registry.upsert(
        "/c/reactions/Ban.script",
        {"kind": "Command", "oncall": lambda user, uid, args: f"{user}:{args}"},
    )
    result = dispatcher.dispatch_command("ban", "mod", "7", "spammer")
    assert result.result.value == "mod:spammer"


def test_unknown_command_is_ignored_quietly(dispatcher, caplog):
    with caplog.at_level("WARNING", logger="reactionhub"):
        assert dispatcher.dispatch_command("lurk", "viewer", "9", "") is None
    assert caplog.text == ""


def test_command_named_like_reward_is_not_invoked(dispatcher, registry, caplog):
    calls = []
    registry.upsert("/c/reactions/ban.script", {"kind": "Reward", "oncall": lambda *a: calls.append(a)})
    with caplog.at_level("WARNING", logger="reactionhub"):
        assert dispatcher.dispatch_command("ban", "mod", "7", "x") is None
    assert calls == []


def test_dispatch_named_mismatch_warns(dispatcher, registry, caplog):
    registry.upsert("/c/reactions/ban.script", {"kind": "Reward", "oncall": lambda *a: None})
    with caplog.at_level("WARNING", logger="reactionhub"):
        assert dispatcher.dispatch_named("ban", EventKind.COMMAND, "mod", "7", "x") is None
    assert "skipped" in caplog.text


def test_call_script(dispatcher, catalog, configs_dir, write):
    catalog.upsert(write(configs_dir / "scripts" / "two.script", "1 + 1"))
    assert dispatcher.call_script("two").result.value == 2
