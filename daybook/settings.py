# daybook/settings.py
from __future__ import annotations

import logging
from datetime import date

from daybook.core.errors import NotFound
from daybook.core.models import format_day
from daybook.store.base import LedgerStore

logger = logging.getLogger(__name__)

INSTALL_DATE = "install_date"
CURRENCY = "currency"
LANGUAGE = "language"

DEFAULTS = {
    CURRENCY: "€",
    LANGUAGE: "en",
}


class Settings:
    """Key-value metadata stored next to the ledger."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def bootstrap(self, today: date | None = None) -> None:
        """Create the schema and seed metadata that is not set yet."""
        self.store.bootstrap()
        today = today or date.today()
        with self.store.atomic() as unit:
            unit.insert_if_absent("metadata", {"key": INSTALL_DATE, "value": format_day(today)})
            for key, value in DEFAULTS.items():
                unit.insert_if_absent("metadata", {"key": key, "value": value})

    def get(self, key: str) -> str:
        with self.store.atomic() as unit:
            row = unit.get("metadata", key)
        if row is None:
            raise NotFound("setting", key)
        return row["value"]

    def set(self, key: str, value: str) -> None:
        if not value or not str(value).strip():
            raise ValueError(f"{key} must not be empty")
        with self.store.atomic() as unit:
            unit.upsert("metadata", {"key": key, "value": str(value).strip()})
        logger.debug("Setting %s changed to %r", key, value)

    def get_install_date(self) -> str:
        return self.get(INSTALL_DATE)

    def get_currency(self) -> str:
        return self.get(CURRENCY)

    def set_currency(self, currency: str) -> None:
        self.set(CURRENCY, currency)

    def get_language(self) -> str:
        return self.get(LANGUAGE)

    def set_language(self, language: str) -> None:
        self.set(LANGUAGE, language)
