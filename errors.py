"""Failure conditions raised by the service layer.

Each class maps to exactly one reported condition at the HTTP edge, see
``main.py`` for the status codes.
"""

from typing import Optional


class ExpensesError(Exception):
    """Base class for every failure the core reports."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(ExpensesError):
    """No identity, or an identity that could not be verified."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ValidationError(ExpensesError, ValueError):
    """Malformed or out-of-range input, tagged with the offending field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def as_field_errors(self) -> dict[str, list[str]]:
        return {self.field: [self.message]}


class NotFound(ExpensesError):
    """The referenced record does not exist."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class Forbidden(ExpensesError):
    """The record exists but is owned by someone else."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class StorageError(ExpensesError):
    """The persistence layer failed. Never retried by the core."""

    def __init__(self, message: str = "Storage unavailable", *, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation
