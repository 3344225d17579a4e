"""Tests for the sqlite points ledger."""

import asyncio
import os

import pytest

from reactionhub.io.points_ledger import SCHEMA_VERSION, PointsLedger, init_db


@pytest.fixture
def ledger(tmp_path):
    led = PointsLedger(str(tmp_path / "data" / "points.db"))
    yield led
    led.close()


def run(coro):
    return asyncio.run(coro)


def test_init_db_creates_tables(tmp_path):
    path = os.path.join(str(tmp_path), "sub", "p.db")
    conn = init_db(path)
    tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"user_points", "schema_meta"} <= tables
    version = conn.execute("SELECT value FROM schema_meta WHERE key='version'").fetchone()[0]
    assert version == str(SCHEMA_VERSION)
    conn.close()


def test_unknown_user_has_zero(ledger):
    assert run(ledger.get_balance("nobody")) == 0


def test_set_add_take(ledger):
    run(ledger.set_balance("u1", 100))
    run(ledger.add_balance("u1", 50))
    assert run(ledger.get_balance("u1")) == 150
    assert run(ledger.take_balance("u1", 120)) is True
    assert run(ledger.get_balance("u1")) == 30


def test_add_creates_user(ledger):
    run(ledger.add_balance("new", 7))
    assert run(ledger.get_balance("new")) == 7


def test_take_never_goes_negative(ledger):
    run(ledger.set_balance("u1", 10))
    assert run(ledger.take_balance("u1", 11)) is False
    assert run(ledger.get_balance("u1")) == 10
    assert run(ledger.take_balance("ghost", 1)) is False


def test_concurrent_takes_are_atomic(ledger):
    run(ledger.set_balance("u1", 5))

    async def drain():
        return await asyncio.gather(*(ledger.take_balance("u1", 1) for _ in range(20)))

    results = run(drain())
    assert sum(results) == 5
    assert run(ledger.get_balance("u1")) == 0


def test_persists_across_instances(tmp_path):
    path = str(tmp_path / "points.db")
    first = PointsLedger(path)
    run(first.set_balance("u1", 9))
    first.close()
    second = PointsLedger(path)
    assert run(second.get_balance("u1")) == 9
    second.close()


def test_closed_ledger_raises(tmp_path):
    led = PointsLedger(str(tmp_path / "p.db"))
    led.close()
    with pytest.raises(RuntimeError, match="closed"):
        run(led.get_balance("u1"))
    led.close()


def test_memory_database():
    led = PointsLedger(":memory:")
    run(led.set_balance("u", 1))
    assert run(led.get_balance("u")) == 1
    led.close()
