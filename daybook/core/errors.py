# daybook/core/errors.py
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_DATE_FORMAT = "invalid_date_format"
    NOT_FOUND = "not_found"
    STORE_FAILURE = "store_failure"


class DaybookError(Exception):
    """Base class for every error raised by the daybook storage layer."""

    kind: ErrorKind


class InvalidDateFormat(DaybookError, ValueError):
    kind = ErrorKind.INVALID_DATE_FORMAT

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date {value!r}, expected DD.MM.YYYY")


class NotFound(DaybookError, LookupError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key!r} not found")


class StoreFailure(DaybookError):
    kind = ErrorKind.STORE_FAILURE

    def __init__(self, message: str):
        super().__init__(message)
