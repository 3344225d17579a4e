"""Tests for Reaction: cooldown gate, enabled flag, error callback."""

import threading

from reactionhub.core.reaction import CallStatus, Reaction, unix_ticks
from reactionhub.event_types import EventKind


def _reaction(runtime, clock, oncall, onerror=None, cooldown_ms=0, name="welcome"):
    return Reaction(
        file_path=f"/configs/reactions/{name}.script",
        kind=EventKind.FOLLOW,
        runtime=runtime,
        oncall=oncall,
        onerror=onerror,
        cooldown_ms=cooldown_ms,
        clock=clock,
    )


class TestCooldown:
    def test_welcome_follow_scenario(self, runtime, clock):
        calls = []
        reaction = _reaction(runtime, clock, lambda user, uid: calls.append(user), cooldown_ms=5000)

        first = reaction.call("alice", "1")
        assert first.success and first.status is CallStatus.RAN

        clock.advance(2.0)
        second = reaction.call("bob", "2")
        assert second.success
        assert second.status is CallStatus.SUPPRESSED
        assert second.result.is_nil

        clock.advance(4.0)
        third = reaction.call("carol", "3")
        assert third.status is CallStatus.RAN
        assert calls == ["alice", "carol"]

    def test_zero_cooldown_never_suppresses(self, runtime, clock):
        calls = []
        reaction = _reaction(runtime, clock, lambda: calls.append(1))
        for _ in range(5):
            reaction.call()
        assert len(calls) == 5

    def test_failure_does_not_start_cooldown(self, runtime, clock):
        state = {"fail": True}

        def oncall():
            if state["fail"]:
                raise ValueError("nope")
            return "ok"

        reaction = _reaction(runtime, clock, oncall, cooldown_ms=10_000)
        assert reaction.call().status is CallStatus.FAILED
        state["fail"] = False
        result = reaction.call()
        assert result.status is CallStatus.RAN
        assert result.result.value == "ok"

    def test_concurrent_callers_pass_gate_once(self, runtime, clock):
        calls = []
        gate = threading.Barrier(8)

        def oncall():
            calls.append(1)

        reaction = _reaction(runtime, clock, oncall, cooldown_ms=60_000)

        def worker():
            gate.wait()
            reaction.call()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(calls) == 1


class TestEnabled:
    def test_disabled_is_suppressed(self, runtime, clock):
        calls = []
        reaction = _reaction(runtime, clock, lambda: calls.append(1))
        reaction.enabled = False
        result = reaction.call()
        assert result.success
        assert result.status is CallStatus.SUPPRESSED
        assert calls == []


class TestErrorCallback:
    def test_onerror_receives_name_message_ticks(self, runtime, clock):
        seen = []

        def oncall():
            raise RuntimeError("boom")

        def onerror(name, message, ticks):
            seen.append((name, message, ticks))
            return "handled"

        before = unix_ticks()
        result = _reaction(runtime, clock, oncall, onerror).call()

        assert not result.success
        assert result.status is CallStatus.FAILED
        assert "boom" in result.error_message
        assert result.result.value == "handled"
        (name, message, ticks) = seen[0]
        assert name == "welcome"
        assert "RuntimeError" in message
        assert ticks >= before

    def test_failing_onerror_yields_nil(self, runtime, clock, caplog):
        def oncall():
            raise RuntimeError("first")

        def onerror(name, message, ticks):
            raise RuntimeError("second")

        with caplog.at_level("WARNING", logger="reactionhub"):
            result = _reaction(runtime, clock, oncall, onerror).call()
        assert not result.success
        assert "first" in result.error_message
        assert result.result.is_nil
        assert "error handler" in caplog.text

    def test_without_onerror(self, runtime, clock):
        def oncall():
            raise KeyError("k")

        result = _reaction(runtime, clock, oncall).call()
        assert not result.success
        assert result.result.is_nil


def test_name_is_file_stem(runtime, clock):
    reaction = _reaction(runtime, clock, lambda: None, name="ban")
    assert reaction.name == "ban"
