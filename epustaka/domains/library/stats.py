"""Dashboard figures and the filtered statistics fed into narrative reports."""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import Any

from epustaka.domains.library.circulation import parse_date
from epustaka.domains.library.models import Book, Loan, LoanStatus, Member

DATE_FILTERS = ("all", "daily", "weekly", "monthly")
ALL_CATEGORIES = "all"

_DATE_FILTER_LABELS = {
    "all": "All time",
    "daily": "Today",
    "weekly": "Last 7 days",
    "monthly": "This month",
}


def dashboard_stats(books: list[Book], loans: list[Loan], members: list[Member]) -> dict[str, int]:
    """
    Headline numbers for the dashboard.

    ``borrowed`` counts loans still out, whether stored as Borrowed or shown
    as Overdue; pass evaluated loans to get the display view.
    """
    return {
        "total_books": sum(b.count for b in books),
        "available_books": sum(b.available for b in books),
        "borrowed_books": sum(
            1 for l in loans if l.status in (LoanStatus.BORROWED, LoanStatus.OVERDUE)
        ),
        "total_members": len(members),
    }


def category_breakdown(books: list[Book]) -> dict[str, int]:
    """Titles per category, largest first."""
    counts: Counter[str] = Counter(b.category or "Uncategorised" for b in books)
    return dict(counts.most_common())


def recent_loans(loans: list[Loan], limit: int = 5) -> list[Loan]:
    """The most recently opened loans, newest loan date first."""
    return sorted(loans, key=lambda l: l.loan_date, reverse=True)[:limit]


def categories(books: list[Book]) -> list[str]:
    seen: dict[str, None] = {}
    for b in books:
        seen.setdefault(b.category, None)
    return list(seen)


def filter_loans(
    loans: list[Loan],
    books: list[Book],
    *,
    date_filter: str = "all",
    category: str = ALL_CATEGORIES,
    today: date,
) -> list[Loan]:
    """Loans matching a book category and a loan-date window."""
    result = list(loans)
    if category != ALL_CATEGORIES:
        ids = {b.id for b in books if b.category == category}
        result = [l for l in result if l.book_id in ids]

    if date_filter == "daily":
        result = [l for l in result if parse_date(l.loan_date) == today]
    elif date_filter == "weekly":
        since = today - timedelta(days=7)
        result = [l for l in result if parse_date(l.loan_date) >= since]
    elif date_filter == "monthly":
        since = today.replace(day=1)
        result = [l for l in result if parse_date(l.loan_date) >= since]
    return result


def top_books(loans: list[Loan], limit: int = 5) -> list[dict[str, Any]]:
    """Most borrowed titles as ``{"title", "count"}`` dicts."""
    counts: Counter[str] = Counter(l.book_id for l in loans)
    titles: dict[str, str] = {}
    for l in loans:
        titles.setdefault(l.book_id, l.book_title)
    return [{"title": titles[bid], "count": n} for bid, n in counts.most_common(limit)]


def report_stats(
    books: list[Book],
    loans: list[Loan],
    *,
    date_filter: str = "all",
    category: str = ALL_CATEGORIES,
    today: date,
) -> dict[str, Any]:
    """
    Aggregates for a narrative report.

    ``loans`` should already be evaluated so that late loans carry the
    Overdue status and their accrued fine.
    """
    relevant_books = books if category == ALL_CATEGORIES else [b for b in books if b.category == category]
    filtered = filter_loans(loans, books, date_filter=date_filter, category=category, today=today)
    late = [l for l in filtered if l.status == LoanStatus.OVERDUE]
    top = top_books(filtered)
    return {
        "total_books": sum(b.count for b in relevant_books),
        "total_loans": len(filtered),
        "total_late": len(late),
        "total_fines": sum(l.fine for l in late),
        "popular_book": top[0]["title"] if top else "No data yet",
        "top_books": top,
    }


def describe_filter(date_filter: str, category: str) -> str:
    period = _DATE_FILTER_LABELS.get(date_filter, date_filter)
    cat = "All categories" if category == ALL_CATEGORIES else category
    return f"Period: {period}, Category: {cat}"
