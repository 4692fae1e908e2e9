"""
Loan lifecycle: opening loans, returning books, and overdue/fine derivation.

Overdue status and fines are derived at read time from "now" and are not
written back. The persisted ``status``/``fine`` of an open loan can therefore
lag behind what ``evaluate_loans`` shows until the loan is returned.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import date, datetime, time, timedelta

from epustaka.domains.library.catalog import LOAN_ID_WIDTH, LOAN_PREFIX, next_id
from epustaka.domains.library.inventory import adjust_available
from epustaka.domains.library.models import Book, Loan, LoanStatus, Member
from epustaka.utils.logger import get_logger

logger = get_logger()

FINE_PER_DAY = 500
DEFAULT_LOAN_DAYS = 7
_SECONDS_PER_DAY = 24 * 60 * 60


def parse_date(value: str) -> date:
    return date.fromisoformat(value[:10])


def _as_datetime(now: date | datetime) -> datetime:
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time.min)


def is_overdue(loan: Loan, now: date | datetime) -> bool:
    """True when the loan is still out (stored as Borrowed) and its due date has passed."""
    if loan.status != LoanStatus.BORROWED:
        return False
    return _as_datetime(now) > _as_datetime(parse_date(loan.due_date))


def compute_fine(due_date: str, now: date | datetime, fine_per_day: int = FINE_PER_DAY) -> int:
    """Fine for every started day past the due date; 0 on or before it."""
    elapsed = (_as_datetime(now) - _as_datetime(parse_date(due_date))).total_seconds()
    if elapsed <= 0:
        return 0
    return math.ceil(elapsed / _SECONDS_PER_DAY) * fine_per_day


def evaluate_loan(loan: Loan, now: date | datetime, fine_per_day: int = FINE_PER_DAY) -> Loan:
    """Display view of a loan: Overdue with an accrued fine if it is late, else unchanged."""
    if not is_overdue(loan, now):
        return loan
    return replace(
        loan,
        status=LoanStatus.OVERDUE,
        fine=compute_fine(loan.due_date, now, fine_per_day),
    )


def evaluate_loans(
    loans: list[Loan],
    now: date | datetime,
    fine_per_day: int = FINE_PER_DAY,
) -> list[Loan]:
    return [evaluate_loan(l, now, fine_per_day) for l in loans]


def open_loan(
    loans: list[Loan],
    books: list[Book],
    member: Member,
    book: Book,
    *,
    loan_date: date,
    due_date: date | None = None,
    loan_days: int = DEFAULT_LOAN_DAYS,
) -> tuple[list[Loan], list[Book], Loan]:
    """
    Open a loan of ``book`` to ``member`` and take one copy off the shelf.

    The member's name and the book's title are copied onto the loan. There is
    no availability guard here; callers only offer books with copies left.

    Returns:
        (loans, books, new_loan)
    """
    due = due_date or loan_date + timedelta(days=loan_days)
    loan = Loan(
        id=next_id([l.id for l in loans], LOAN_PREFIX, LOAN_ID_WIDTH),
        member_id=member.id,
        member_name=member.name,
        book_id=book.id,
        book_title=book.title,
        loan_date=loan_date.isoformat(),
        due_date=due.isoformat(),
        status=LoanStatus.BORROWED,
        fine=0,
    )
    if book.available <= 0:
        logger.warning("Opening loan %s on book %s with no copies available", loan.id, book.id)
    return [*loans, loan], adjust_available(books, book.id, -1), loan


def return_loan(
    loans: list[Loan],
    books: list[Book],
    loan_id: str,
    *,
    today: date,
    finalize_fine: bool = False,
    fine_per_day: int = FINE_PER_DAY,
) -> tuple[list[Loan], list[Book], Loan | None]:
    """
    Mark a loan returned today and put its copy back on the shelf.

    Unknown or already returned loans are a no-op and return ``None``. The
    stored fine is left as it is unless ``finalize_fine`` is set, in which
    case the fine accrued up to ``today`` is frozen onto the loan.

    Returns:
        (loans, books, returned_loan_or_None)
    """
    target = next((l for l in loans if l.id == loan_id), None)
    if target is None:
        logger.info("Return ignored: unknown loan %s", loan_id)
        return loans, books, None
    if target.is_returned or target.status == LoanStatus.RETURNED:
        logger.info("Return ignored: loan %s already returned", loan_id)
        return loans, books, None

    fine = target.fine
    if finalize_fine:
        fine = evaluate_loan(target, today, fine_per_day).fine
    returned = replace(
        target,
        status=LoanStatus.RETURNED,
        return_date=today.isoformat(),
        fine=fine,
    )
    new_loans = [returned if l.id == loan_id else l for l in loans]
    return new_loans, adjust_available(books, target.book_id, +1), returned
