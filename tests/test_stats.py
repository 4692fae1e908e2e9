"""
Tests for dashboard figures and report statistics.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from epustaka.domains.library.circulation import evaluate_loans
from epustaka.domains.library.models import LoanStatus
from epustaka.domains.library.stats import (
    categories,
    category_breakdown,
    dashboard_stats,
    describe_filter,
    filter_loans,
    recent_loans,
    report_stats,
    top_books,
)

TODAY = date(2024, 3, 15)


def test_dashboard_counts_overdue_as_borrowed(books, members, borrowed_loan) -> None:
    returned = replace(borrowed_loan, id="L002", status=LoanStatus.RETURNED, return_date="2024-03-05")
    shown = evaluate_loans([borrowed_loan, returned], TODAY)
    assert shown[0].status == LoanStatus.OVERDUE
    s = dashboard_stats(books, shown, members)
    assert s == {"total_books": 7, "available_books": 7, "borrowed_books": 1, "total_members": 2}


def test_category_helpers(books) -> None:
    assert category_breakdown(books + books[:1]) == {"Fiction": 2, "Science": 1}
    assert categories(books + books) == ["Fiction", "Science"]


def test_filter_loans_by_window_and_category(books, borrowed_loan) -> None:
    old = replace(borrowed_loan, id="L002", loan_date="2024-02-20")
    today = replace(borrowed_loan, id="L003", book_id="2", loan_date="2024-03-15")
    loans = [borrowed_loan, old, today]

    assert len(filter_loans(loans, books, today=TODAY)) == 3
    assert [l.id for l in filter_loans(loans, books, date_filter="daily", today=TODAY)] == ["L003"]
    assert [l.id for l in filter_loans(loans, books, date_filter="weekly", today=TODAY)] == ["L003"]
    assert [l.id for l in filter_loans(loans, books, date_filter="monthly", today=TODAY)] == ["L001", "L003"]
    assert [l.id for l in filter_loans(loans, books, category="Fiction", today=TODAY)] == ["L001", "L002"]


def test_top_books_most_borrowed_first(borrowed_loan) -> None:
    other = replace(borrowed_loan, id="L002", book_id="2", book_title="Integrated Science")
    loans = [other, borrowed_loan, replace(borrowed_loan, id="L003")]
    assert top_books(loans) == [
        {"title": "Laskar Pelangi", "count": 2},
        {"title": "Integrated Science", "count": 1},
    ]


def test_report_stats_totals(books, borrowed_loan) -> None:
    shown = evaluate_loans([borrowed_loan], TODAY)
    s = report_stats(books, shown, today=TODAY)
    assert s["total_books"] == 7
    assert s["total_loans"] == 1
    assert s["total_late"] == 1
    assert s["total_fines"] == 3500
    assert s["popular_book"] == "Laskar Pelangi"


def test_report_stats_without_loans(books) -> None:
    s = report_stats(books, [], category="Science", today=TODAY)
    assert s["total_books"] == 2
    assert s["total_fines"] == 0
    assert s["popular_book"] == "No data yet"


def test_describe_filter() -> None:
    assert describe_filter("monthly", "all") == "Period: This month, Category: All categories"
    assert describe_filter("daily", "Science") == "Period: Today, Category: Science"


def test_recent_loans_newest_first(borrowed_loan) -> None:
    loans = [replace(borrowed_loan, id=f"L{i:03d}", loan_date=f"2024-03-{i:02d}") for i in range(1, 8)]
    assert [l.id for l in recent_loans(loans)] == ["L007", "L006", "L005", "L004", "L003"]
    assert recent_loans([]) == []
