# daybook/app.py
"""Application-facing facade.

Every method takes and returns plain values (ints, strings, dicts and lists)
so callers never hold store handles. Dates are ``DD.MM.YYYY`` strings.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Dict, List

from daybook.core.models import Note, Transaction
from daybook.days import DayIndex
from daybook.notes import NoteBook
from daybook.outputs import get_output
from daybook.settings import Settings
from daybook.store import get_store
from daybook.store.base import LedgerStore

TRANSACTION_FIELDS = ("id", "description", "amount", "transaction_type", "date")


class Daybook:
    def __init__(self, store: LedgerStore):
        self.store = store
        self.days = DayIndex(store)
        self.notes = NoteBook(store)
        self.settings = Settings(store)

    @classmethod
    def from_config(cls, config: dict) -> "Daybook":
        return cls(get_store(config.get('store', 'sqlite'), config))

    def init(self) -> None:
        self.settings.bootstrap()

    def close(self) -> None:
        self.store.close()

    # transactions

    def add_transaction(
        self, description: str, amount: float, transaction_type: str, date: str
    ) -> int:
        return self.days.add(description, amount, transaction_type, date)

    def update_transaction(self, record: Dict[str, object]) -> None:
        missing = [name for name in TRANSACTION_FIELDS if name not in record]
        if missing:
            raise ValueError(f"Transaction record is missing {', '.join(missing)}")
        self.days.update(
            Transaction(
                id=int(record["id"]),
                description=str(record["description"]),
                amount=float(record["amount"]),
                transaction_type=str(record["transaction_type"]),
                date=str(record["date"]),
            )
        )

    def delete_transaction(self, tx_id: int) -> None:
        self.days.delete(int(tx_id))

    def list_transactions(self) -> List[Dict[str, object]]:
        return [asdict(tx) for tx in self.days.list_transactions()]

    def list_days(self) -> List[str]:
        return [day.date for day in self.days.list_days()]

    # notes

    def add_note(self, content: str) -> int:
        return self.notes.add(content)

    def list_notes(self) -> List[Dict[str, object]]:
        return [asdict(note) for note in self.notes.list()]

    def update_note(self, record: Dict[str, object]) -> None:
        self.notes.update(Note(id=int(record["id"]), content=str(record["content"])))

    def delete_note(self, note_id: int) -> None:
        self.notes.delete(int(note_id))

    # settings

    def get_install_date(self) -> str:
        return self.settings.get_install_date()

    def get_currency(self) -> str:
        return self.settings.get_currency()

    def set_currency(self, currency: str) -> None:
        self.settings.set_currency(currency)

    def get_language(self) -> str:
        return self.settings.get_language()

    def set_language(self, language: str) -> None:
        self.settings.set_language(language)

    # export

    def export(self, output_name: str, config: dict):
        """Write all transactions with the named output; returns its path."""
        outputter = get_output(output_name, config)
        return outputter.write(self.days.list_transactions())
