# daybook/store/base.py
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

from daybook.core.errors import StoreFailure

# table -> (primary key column, key is auto-assigned, columns)
SCHEMA = {
    "transactions": (
        "id",
        True,
        ("id", "description", "amount", "transaction_type", "date"),
    ),
    "days": ("date", False, ("date",)),
    "metadata": ("key", False, ("key", "value")),
    "notes": ("id", True, ("id", "content")),
}


def table_key(table: str) -> str:
    return table_spec(table)[0]


def table_spec(table: str):
    try:
        return SCHEMA[table]
    except KeyError:
        raise StoreFailure(f"Unknown table {table!r}") from None


def check_columns(table: str, columns) -> None:
    known = table_spec(table)[2]
    unknown = [c for c in columns if c not in known]
    if unknown:
        raise StoreFailure(f"Unknown column(s) {unknown} for table {table!r}")


def check_update(table: str, values) -> None:
    check_columns(table, values)
    column = table_key(table)
    if column in values:
        raise StoreFailure(f"Primary key {table}.{column} cannot be updated")


class StoreUnit(ABC):
    """Operations available inside one atomic unit of a :class:`LedgerStore`.

    Rows are plain dicts keyed by column name. Every method raises
    :class:`StoreFailure` when the underlying engine rejects the call.
    """

    @abstractmethod
    def get(self, table: str, key) -> Optional[dict]:
        """Return the row whose primary key is *key*, or ``None``."""

    @abstractmethod
    def count(self, table: str, **match) -> int:
        """Count rows whose columns equal the given values."""

    @abstractmethod
    def select(self, table: str, **match) -> List[dict]:
        """Return matching rows ordered by primary key."""

    @abstractmethod
    def insert(self, table: str, row: dict):
        """Insert *row* and return its primary key."""

    @abstractmethod
    def insert_if_absent(self, table: str, row: dict) -> bool:
        """Insert *row* unless its key exists. Returns True when inserted."""

    @abstractmethod
    def upsert(self, table: str, row: dict) -> None:
        """Insert *row*, replacing any row with the same key."""

    @abstractmethod
    def update(self, table: str, key, values: dict) -> bool:
        """Overwrite columns of the row at *key*. False if no row matched."""

    @abstractmethod
    def delete(self, table: str, key) -> bool:
        """Delete the row at *key*. False if no row matched."""


class LedgerStore(ABC):
    @abstractmethod
    def atomic(self) -> Iterator[StoreUnit]:
        """Context manager yielding a :class:`StoreUnit`.

        Changes made through the unit are committed when the block exits
        normally and rolled back when it raises.
        """

    @abstractmethod
    def bootstrap(self) -> None:
        """Create the ledger tables if they do not exist."""

    def close(self) -> None:
        pass
