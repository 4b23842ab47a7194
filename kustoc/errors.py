"""
Domain exceptions for Kustoc.

Each exception carries the HTTP status and error code the API layer maps it
to, so services raise plain Python exceptions and never import FastAPI.
"""


class KustocError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    error_code = "storage_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(KustocError):
    """A required field is missing or a value is malformed."""

    status_code = 400
    error_code = "validation_error"


class MissingReferenceError(ValidationError):
    """A foreign-key value points at a row that does not exist."""

    error_code = "missing_reference"

    def __init__(self, column: str, value, parent_table: str):
        super().__init__(f"{column} {value!r} does not reference an existing row in {parent_table}")
        self.column = column
        self.value = value
        self.parent_table = parent_table


class NotFoundError(KustocError):
    """The addressed row does not exist."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, table: str, key):
        super().__init__(f"{table} {key!r} not found")
        self.table = table
        self.key = key


class HasDependentsError(KustocError):
    """A delete was rejected because RESTRICT relations still point at the row."""

    status_code = 409
    error_code = "has_dependents"

    def __init__(self, table: str, key, dependents: dict[str, int]):
        summary = ", ".join(f"{t} ({n})" for t, n in sorted(dependents.items()))
        super().__init__(f"{table} {key!r} has dependents: {summary}")
        self.table = table
        self.key = key
        self.dependents = dependents


class StorageError(KustocError):
    """The database rejected an operation (constraint, lock, I/O)."""


class ArrayFieldError(StorageError):
    """A stored array column does not hold JSON array text."""
