# daybook/core/models.py
from dataclasses import dataclass
from datetime import date, datetime

from daybook.core.errors import InvalidDateFormat

DATE_FORMAT = "%d.%m.%Y"


def parse_day(value) -> date:
    """Parse a ``DD.MM.YYYY`` string into a :class:`date`."""
    if not isinstance(value, str):
        raise InvalidDateFormat(value)
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDateFormat(value) from exc


def format_day(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def normalize_day(value) -> str:
    """Return the canonical ``DD.MM.YYYY`` spelling of *value*."""
    return format_day(parse_day(value))


def day_sort_key(value: str) -> date:
    return parse_day(value)


@dataclass
class Transaction:
    id: int
    description: str
    amount: float
    transaction_type: str
    date: str

    @classmethod
    def from_row(cls, row: dict) -> "Transaction":
        return cls(
            id=int(row["id"]),
            description=row["description"],
            amount=float(row["amount"]),
            transaction_type=row["transaction_type"],
            date=row["date"],
        )


@dataclass(frozen=True)
class Day:
    date: str


@dataclass
class Note:
    id: int
    content: str
