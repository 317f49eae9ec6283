# daybook/store/sqlite_store.py
"""SQLite implementation of the ledger store.

A connection is opened for every atomic unit and closed when the unit
finishes. The special path ``:memory:`` keeps a single connection open for
the lifetime of the store so the data survives between units.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from daybook.core.errors import StoreFailure
from daybook.store.base import (
    LedgerStore,
    StoreUnit,
    check_columns,
    check_update,
    table_key,
    table_spec,
)

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        description TEXT NOT NULL,
        amount REAL NOT NULL,
        transaction_type TEXT NOT NULL,
        date TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS days (
        date TEXT PRIMARY KEY
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS metadata (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        content TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_transactions_date
    ON transactions(date)
    """,
)


def _where(table: str, match: dict) -> tuple[str, list]:
    check_columns(table, match)
    conditions = [f"{column} = ?" for column in match]
    where = " WHERE " + " AND ".join(conditions) if conditions else ""
    return where, list(match.values())


class SQLiteUnit(StoreUnit):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _execute(self, sql: str, params=()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreFailure(f"SQLite error: {exc}") from exc

    def get(self, table: str, key) -> Optional[dict]:
        column = table_key(table)
        row = self._execute(
            f"SELECT * FROM {table} WHERE {column} = ?", (key,)
        ).fetchone()
        return dict(row) if row is not None else None

    def count(self, table: str, **match) -> int:
        where, params = _where(table, match)
        row = self._execute(f"SELECT COUNT(*) FROM {table}{where}", params).fetchone()
        return int(row[0] or 0)

    def select(self, table: str, **match) -> List[dict]:
        where, params = _where(table, match)
        rows = self._execute(
            f"SELECT * FROM {table}{where} ORDER BY {table_key(table)}", params
        ).fetchall()
        return [dict(r) for r in rows]

    def insert(self, table: str, row: dict):
        check_columns(table, row)
        column, auto_key, _ = table_spec(table)
        names = ", ".join(row)
        marks = ", ".join("?" for _ in row)
        cursor = self._execute(
            f"INSERT INTO {table} ({names}) VALUES ({marks})", list(row.values())
        )
        if auto_key and column not in row:
            return cursor.lastrowid
        return row[column]

    def insert_if_absent(self, table: str, row: dict) -> bool:
        check_columns(table, row)
        names = ", ".join(row)
        marks = ", ".join("?" for _ in row)
        cursor = self._execute(
            f"INSERT OR IGNORE INTO {table} ({names}) VALUES ({marks})",
            list(row.values()),
        )
        return cursor.rowcount == 1

    def upsert(self, table: str, row: dict) -> None:
        check_columns(table, row)
        names = ", ".join(row)
        marks = ", ".join("?" for _ in row)
        self._execute(
            f"INSERT OR REPLACE INTO {table} ({names}) VALUES ({marks})",
            list(row.values()),
        )

    def update(self, table: str, key, values: dict) -> bool:
        check_update(table, values)
        column = table_key(table)
        assignments = ", ".join(f"{name} = ?" for name in values)
        cursor = self._execute(
            f"UPDATE {table} SET {assignments} WHERE {column} = ?",
            list(values.values()) + [key],
        )
        return cursor.rowcount > 0

    def delete(self, table: str, key) -> bool:
        column = table_key(table)
        cursor = self._execute(f"DELETE FROM {table} WHERE {column} = ?", (key,))
        return cursor.rowcount > 0


class SQLiteStore(LedgerStore):
    """Ledger store backed by a SQLite database file."""

    def __init__(self, db_path=MEMORY_PATH, timeout: float = 10.0):
        self.db_path = str(db_path)
        self.timeout = timeout
        self._lock = threading.Lock()
        self._shared: Optional[sqlite3.Connection] = None

    @classmethod
    def from_config(cls, config: dict) -> "SQLiteStore":
        return cls(
            config.get("db_path", MEMORY_PATH),
            timeout=float(config.get("db_timeout", 10.0)),
        )

    def _connect(self) -> sqlite3.Connection:
        if self._shared is not None:
            return self._shared
        if self.db_path != MEMORY_PATH:
            try:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreFailure(f"Cannot create database directory: {exc}") from exc
        # Transactions are opened explicitly with BEGIN IMMEDIATE.
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error:
            conn.close()
            raise
        if self.db_path == MEMORY_PATH:
            self._shared = conn
        return conn

    def _release(self, conn: sqlite3.Connection) -> None:
        if conn is not self._shared:
            conn.close()

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    @contextmanager
    def atomic(self) -> Iterator[SQLiteUnit]:
        with self._lock:
            conn = None
            try:
                conn = self._connect()
                conn.execute("BEGIN IMMEDIATE")
                yield SQLiteUnit(conn)
                conn.execute("COMMIT")
            except sqlite3.Error as exc:
                logger.error("SQLite error, rolling back: %s", exc, exc_info=True)
                if conn is not None:
                    self._rollback(conn)
                raise StoreFailure(f"SQLite error: {exc}") from exc
            except StoreFailure:
                logger.error("Store failure, rolling back unit", exc_info=True)
                if conn is not None:
                    self._rollback(conn)
                raise
            except Exception as exc:
                logger.debug("Rolling back unit after %s: %s", type(exc).__name__, exc)
                if conn is not None:
                    self._rollback(conn)
                raise
            finally:
                if conn is not None:
                    self._release(conn)

    def bootstrap(self) -> None:
        with self.atomic() as unit:
            for statement in _TABLES:
                unit._execute(statement)
        logger.debug("Ledger schema ready at %s", self.db_path)

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None
