# daybook/days.py
"""Day index maintenance.

The ``days`` table holds one row per date that has at least one row in
``transactions``. :class:`DayIndex` is the only writer of ``days``: every
add, update and delete of a transaction reconciles the affected dates in the
same atomic unit as the transaction change, so a failure anywhere leaves
both tables as they were.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List

from daybook.core.errors import NotFound
from daybook.core.models import Day, Transaction, normalize_day, parse_day
from daybook.store.base import LedgerStore, StoreUnit

logger = logging.getLogger(__name__)


def _finite_amount(amount) -> float:
    value = float(amount)
    if not math.isfinite(value):
        raise ValueError(f"Amount must be a finite number, got {amount!r}")
    return value


@dataclass
class CoherenceReport:
    stale: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.stale and not self.missing


class DayIndex:
    """Keep ``days`` equal to the distinct transaction dates."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def add(self, description: str, amount: float, transaction_type: str, date: str) -> int:
        """Insert a transaction and mark its day.

        Returns the id assigned to the new transaction.
        """
        day = normalize_day(date)
        value = _finite_amount(amount)
        with self.store.atomic() as unit:
            tx_id = unit.insert(
                "transactions",
                {
                    "description": description,
                    "amount": value,
                    "transaction_type": transaction_type,
                    "date": day,
                },
            )
            if unit.insert_if_absent("days", {"date": day}):
                logger.debug("Day %s added to index", day)
        logger.debug("Added transaction %s on %s", tx_id, day)
        return tx_id

    def update(self, transaction: Transaction) -> None:
        """Overwrite a stored transaction and move its day marker if needed."""
        amount = _finite_amount(transaction.amount)
        with self.store.atomic() as unit:
            current = unit.get("transactions", transaction.id)
            if current is None:
                raise NotFound("transaction", transaction.id)
            old_day = current["date"]
            new_day = normalize_day(transaction.date)

            updated = unit.update(
                "transactions",
                transaction.id,
                {
                    "description": transaction.description,
                    "amount": amount,
                    "transaction_type": transaction.transaction_type,
                    "date": new_day,
                },
            )
            if not updated:
                # deleted between the read and the write
                raise NotFound("transaction", transaction.id)

            unit.insert_if_absent("days", {"date": new_day})
            if old_day != new_day:
                self._retire_if_unused(unit, old_day)
        logger.debug("Updated transaction %s (%s -> %s)", transaction.id, old_day, new_day)

    def delete(self, tx_id: int) -> None:
        """Remove a transaction and retire its day if nothing else is on it."""
        with self.store.atomic() as unit:
            current = unit.get("transactions", tx_id)
            if current is None:
                raise NotFound("transaction", tx_id)
            if not unit.delete("transactions", tx_id):
                raise NotFound("transaction", tx_id)
            self._retire_if_unused(unit, current["date"])
        logger.debug("Deleted transaction %s", tx_id)

    def list_days(self) -> List[Day]:
        with self.store.atomic() as unit:
            rows = unit.select("days")
        return [Day(date=row["date"]) for row in rows]

    def list_transactions(self) -> List[Transaction]:
        with self.store.atomic() as unit:
            rows = unit.select("transactions")
        return [Transaction.from_row(row) for row in rows]

    def verify(self) -> CoherenceReport:
        """Compare the index against the transactions without changing either."""
        with self.store.atomic() as unit:
            marked = {row["date"] for row in unit.select("days")}
            used = {row["date"] for row in unit.select("transactions")}
        return CoherenceReport(
            stale=sorted(marked - used, key=parse_day),
            missing=sorted(used - marked, key=parse_day),
        )

    @staticmethod
    def _retire_if_unused(unit: StoreUnit, day: str) -> None:
        if unit.count("transactions", date=day) == 0:
            unit.delete("days", day)
            logger.debug("Day %s retired from index", day)
