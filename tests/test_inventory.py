"""
Tests for availability bookkeeping and reconciliation.
"""

from __future__ import annotations

import random
from dataclasses import replace
from datetime import date

from epustaka.domains.library.circulation import open_loan, return_loan
from epustaka.domains.library.inventory import (
    adjust_available,
    expected_available,
    find_discrepancies,
    reconcile,
)
from epustaka.domains.library.models import LoanStatus


def test_adjust_available_only_touches_target(books) -> None:
    out = adjust_available(books, "2", -1)
    assert out[0] == books[0]
    assert out[1].available == 1
    assert adjust_available(books, "missing", -1) == books


def test_bounds_hold_over_loan_return_sequences(books, members) -> None:
    """Availability stays within 0..count and agrees with reconciliation."""
    rng = random.Random(7)
    loans, current = [], list(books)
    for step in range(60):
        open_ids = [l.id for l in loans if l.status != LoanStatus.RETURNED]
        lendable = [b for b in current if b.available > 0]
        if lendable and (not open_ids or rng.random() < 0.6):
            book = rng.choice(lendable)
            loans, current, _ = open_loan(
                loans, current, rng.choice(members), book, loan_date=date(2024, 1, 1)
            )
        else:
            loans, current, _ = return_loan(loans, current, rng.choice(open_ids), today=date(2024, 1, 2))
        for b in current:
            assert 0 <= b.available <= b.count
        assert find_discrepancies(current, loans) == []


def test_expected_available_counts_open_loans(books, members) -> None:
    loans, current, first = open_loan([], books, members[0], books[0], loan_date=date(2024, 1, 1))
    loans, current, _ = open_loan(loans, current, members[1], current[0], loan_date=date(2024, 1, 1))
    loans, current, _ = return_loan(loans, current, first.id, today=date(2024, 1, 3))
    assert expected_available(current[0], loans) == 4


def test_discrepancy_flagged_and_reconciled(books, borrowed_loan) -> None:
    skewed = [replace(books[0], available=5), replace(books[1], available=3)]
    found = find_discrepancies(skewed, [borrowed_loan])
    assert {d.book_id for d in found} == {"1", "2"}
    over = next(d for d in found if d.book_id == "2")
    assert over.out_of_bounds
    assert over.expected == 2

    fixed = reconcile(skewed, [borrowed_loan])
    assert fixed[0].available == 4
    assert fixed[1].available == 2
    assert find_discrepancies(fixed, [borrowed_loan]) == []
