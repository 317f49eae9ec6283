# daybook/store/memory.py
from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from daybook.core.errors import StoreFailure
from daybook.store.base import (
    SCHEMA,
    LedgerStore,
    StoreUnit,
    check_columns,
    check_update,
    table_spec,
)

logger = logging.getLogger(__name__)


class MemoryUnit(StoreUnit):
    def __init__(self, store: "MemoryStore"):
        self.store = store

    def _table(self, name: str) -> Dict[object, dict]:
        table_spec(name)
        try:
            return self.store.tables[name]
        except KeyError:
            raise StoreFailure(f"no such table: {name}") from None

    def get(self, table: str, key) -> Optional[dict]:
        row = self._table(table).get(key)
        return dict(row) if row is not None else None

    def count(self, table: str, **match) -> int:
        return len(self.select(table, **match))

    def select(self, table: str, **match) -> List[dict]:
        check_columns(table, match)
        rows = self._table(table)
        return [
            dict(rows[key])
            for key in sorted(rows)
            if all(rows[key].get(c) == v for c, v in match.items())
        ]

    def insert(self, table: str, row: dict):
        check_columns(table, row)
        rows = self._table(table)
        column, auto_key, columns = table_spec(table)
        row = dict(row)
        if auto_key and column not in row:
            self.store.sequences[table] = self.store.sequences.get(table, 0) + 1
            row[column] = self.store.sequences[table]
        key = row.get(column)
        if key is None:
            raise StoreFailure(f"NOT NULL constraint failed: {table}.{column}")
        if key in rows:
            raise StoreFailure(f"UNIQUE constraint failed: {table}.{column}")
        if auto_key:
            self.store.sequences[table] = max(self.store.sequences.get(table, 0), key)
        rows[key] = {c: row.get(c) for c in columns}
        return key

    def insert_if_absent(self, table: str, row: dict) -> bool:
        column = table_spec(table)[0]
        if row.get(column) in self._table(table):
            return False
        self.insert(table, row)
        return True

    def upsert(self, table: str, row: dict) -> None:
        column = table_spec(table)[0]
        self._table(table).pop(row.get(column), None)
        self.insert(table, row)

    def update(self, table: str, key, values: dict) -> bool:
        check_update(table, values)
        rows = self._table(table)
        if key not in rows:
            return False
        rows[key].update(values)
        return True

    def delete(self, table: str, key) -> bool:
        return self._table(table).pop(key, None) is not None


class MemoryStore(LedgerStore):
    """Ledger store that keeps every table in process memory.

    Each atomic unit snapshots the tables first and restores the snapshot
    if the unit raises.
    """

    def __init__(self):
        self.tables: Dict[str, Dict[object, dict]] = {}
        self.sequences: Dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: dict) -> "MemoryStore":
        return cls()

    @contextmanager
    def atomic(self) -> Iterator[MemoryUnit]:
        with self._lock:
            snapshot = copy.deepcopy((self.tables, self.sequences))
            try:
                yield MemoryUnit(self)
            except StoreFailure:
                logger.error("Store failure, rolling back unit", exc_info=True)
                self.tables, self.sequences = snapshot
                raise
            except Exception as exc:
                logger.debug("Rolling back unit after %s: %s", type(exc).__name__, exc)
                self.tables, self.sequences = snapshot
                raise

    def bootstrap(self) -> None:
        with self.atomic():
            for name in SCHEMA:
                self.tables.setdefault(name, {})
