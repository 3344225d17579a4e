"""SQLite-backed per-user points ledger.

Tables:
  - user_points: one row per user id with its current balance

Every public operation is a coroutine; the blocking sqlite work runs on a
worker thread via asyncio.to_thread so a host event loop never stalls on disk.
"""

import asyncio
import logging
import os
import sqlite3
import threading

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def init_db(path: str) -> sqlite3.Connection:
    """Initialize the ledger database at path, creating tables if needed."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    conn = sqlite3.connect(path, check_same_thread=False)

    if path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")

    _create_tables(conn)
    return conn


def _create_tables(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS user_points (
            user_id TEXT PRIMARY KEY,
            balance INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS schema_meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
    """)
    conn.execute(
        "INSERT OR IGNORE INTO schema_meta (key, value) VALUES ('version', ?)",
        (str(SCHEMA_VERSION),),
    )
    conn.commit()


class PointsLedger:
    """Balances keyed by user id. Unknown users have a balance of 0."""

    def __init__(self, path: str) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = init_db(self._path)
        self._lock = threading.Lock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("points ledger is closed")
        return self._conn

    # ─── Blocking implementations ─────────────────────────────────────────

    def _get(self, user_id: str) -> int:
        with self._lock:
            row = self._connection().execute(
                "SELECT balance FROM user_points WHERE user_id = ?", (user_id,)
            ).fetchone()
        return int(row[0]) if row else 0

    def _set(self, user_id: str, amount: int) -> None:
        with self._lock:
            conn = self._connection()
            conn.execute(
                """INSERT INTO user_points (user_id, balance) VALUES (?, ?)
                   ON CONFLICT(user_id) DO UPDATE
                   SET balance = excluded.balance, updated_at = datetime('now')""",
                (user_id, amount),
            )
            conn.commit()

    def _add(self, user_id: str, amount: int) -> None:
        with self._lock:
            conn = self._connection()
            conn.execute(
                """INSERT INTO user_points (user_id, balance) VALUES (?, ?)
                   ON CONFLICT(user_id) DO UPDATE
                   SET balance = balance + excluded.balance, updated_at = datetime('now')""",
                (user_id, amount),
            )
            conn.commit()

    def _take(self, user_id: str, amount: int) -> bool:
        # Conditional update keeps check-and-debit atomic.
        with self._lock:
            conn = self._connection()
            cursor = conn.execute(
                """UPDATE user_points
                   SET balance = balance - ?, updated_at = datetime('now')
                   WHERE user_id = ? AND balance >= ?""",
                (amount, user_id, amount),
            )
            conn.commit()
            return cursor.rowcount == 1

    # ─── Async surface ────────────────────────────────────────────────────

    async def get_balance(self, user_id: str) -> int:
        return await asyncio.to_thread(self._get, str(user_id))

    async def set_balance(self, user_id: str, amount: int) -> None:
        await asyncio.to_thread(self._set, str(user_id), int(amount))

    async def add_balance(self, user_id: str, amount: int) -> None:
        await asyncio.to_thread(self._add, str(user_id), int(amount))

    async def take_balance(self, user_id: str, amount: int) -> bool:
        """Debit amount if the user can afford it. Never goes negative."""
        return await asyncio.to_thread(self._take, str(user_id), int(amount))

    def close(self) -> None:
        with self._lock:
            conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
            logger.debug("closed points ledger %s", self._path)
