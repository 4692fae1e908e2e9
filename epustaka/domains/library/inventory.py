"""
Book availability: incremental adjustment plus a first-principles reconciliation.

Availability is normally maintained event by event (loan opened: -1, loan
returned: +1). Nothing in that path recomputes it, so a missed or duplicated
event stays in the data. ``find_discrepancies`` and ``reconcile`` recompute
``available = count - open loans`` for integrity checks.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from epustaka.domains.library.models import Book, Loan, LoanStatus


@dataclass(frozen=True)
class AvailabilityDiscrepancy:
    book_id: str
    title: str
    recorded: int
    expected: int
    count: int

    @property
    def out_of_bounds(self) -> bool:
        return not 0 <= self.recorded <= self.count


def adjust_available(books: list[Book], book_id: str, delta: int) -> list[Book]:
    """Return books with ``available`` of book_id shifted by delta. No clamping."""
    return [
        replace(b, available=b.available + delta) if b.id == book_id else b
        for b in books
    ]


def open_loan_count(book_id: str, loans: list[Loan]) -> int:
    return sum(1 for l in loans if l.book_id == book_id and l.status != LoanStatus.RETURNED)


def expected_available(book: Book, loans: list[Loan]) -> int:
    return book.count - open_loan_count(book.id, loans)


def find_discrepancies(books: list[Book], loans: list[Loan]) -> list[AvailabilityDiscrepancy]:
    out: list[AvailabilityDiscrepancy] = []
    for b in books:
        expected = expected_available(b, loans)
        if b.available != expected or not 0 <= b.available <= b.count:
            out.append(AvailabilityDiscrepancy(b.id, b.title, b.available, expected, b.count))
    return out


def reconcile(books: list[Book], loans: list[Loan]) -> list[Book]:
    """Recompute every book's availability from its open loans, clamped to 0..count."""
    return [
        replace(b, available=min(max(expected_available(b, loans), 0), b.count))
        for b in books
    ]
