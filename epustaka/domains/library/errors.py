"""Exceptions raised by library domain operations."""

from __future__ import annotations


class LibraryError(Exception):
    """Base class for library domain errors."""


class RecordNotFoundError(LibraryError):
    """Raised when an operation names a book or member that does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class RecordInUseError(LibraryError):
    """Raised by the reject delete policy when open loans still reference a record."""

    def __init__(self, kind: str, record_id: str, loan_ids: list[str]) -> None:
        super().__init__(
            f"{kind} {record_id} has {len(loan_ids)} open loan(s): {', '.join(loan_ids)}"
        )
        self.kind = kind
        self.record_id = record_id
        self.loan_ids = loan_ids
