"""
Tests for catalog and roster maintenance: ID assignment, edits, deletes and search.
"""

from __future__ import annotations

import pytest

from epustaka.domains.library.catalog import (
    DeletePolicy,
    add_book,
    add_member,
    delete_book,
    delete_member,
    next_id,
    search_books,
    search_members,
    update_book,
)
from epustaka.domains.library.errors import RecordInUseError, RecordNotFoundError
from epustaka.domains.library.models import MemberType


def test_next_id_counts_up_and_skips_foreign_ids() -> None:
    assert next_id([], "M", 3) == "M001"
    assert next_id(["M001", "M007", "MAB3Z"], "M", 3) == "M008"
    assert next_id(["1", "2", "4", "k3j9x2abc"]) == "5"
    assert next_id(["L999"], "L", 3) == "L1000"


def test_add_book_sets_available_to_count(books) -> None:
    out, book = add_book(
        books, code="B010", title="Bumi", author="Tere Liye", publisher="Gramedia",
        year=2014, category="Fiction", count=10,
    )
    assert book.id == "3"
    assert book.available == 10
    assert out[-1] is book
    assert len(out) == len(books) + 1
    assert len({b.id for b in out}) == len(out)


def test_update_book_count_shifts_available(books) -> None:
    _, book = update_book(books, "1", {"count": 8, "title": "Laskar Pelangi (2nd ed.)"})
    assert book.count == 8
    assert book.available == 8
    _, shrunk = update_book(books, "2", {"count": 0})
    assert shrunk.available == 0
    with pytest.raises(RecordNotFoundError):
        update_book(books, "99", {"title": "x"})


def test_add_member_assigns_prefixed_id(members) -> None:
    out, member = add_member(members, id_number="55555", name="Rina", class_name="7-C", type="student")
    assert member.id == "M003"
    assert member.type == MemberType.STUDENT
    assert out[-1] == member


def test_delete_keeps_loan_snapshots(books, members, borrowed_loan) -> None:
    loans = [borrowed_loan]
    remaining_books = delete_book(books, loans, "1")
    remaining_members = delete_member(members, loans, "M001")
    assert all(b.id != "1" for b in remaining_books)
    assert all(m.id != "M001" for m in remaining_members)
    assert loans[0].member_name == "Budi Santoso"
    assert loans[0].book_title == "Laskar Pelangi"


def test_reject_policy_refuses_records_with_open_loans(books, members, borrowed_loan) -> None:
    with pytest.raises(RecordInUseError) as exc:
        delete_book(books, [borrowed_loan], "1", DeletePolicy.REJECT)
    assert exc.value.loan_ids == ["L001"]
    with pytest.raises(RecordInUseError):
        delete_member(members, [borrowed_loan], "M001", DeletePolicy.REJECT)
    assert len(delete_book(books, [borrowed_loan], "2", DeletePolicy.REJECT)) == 1


def test_delete_policy_parse() -> None:
    assert DeletePolicy.parse("REJECT") is DeletePolicy.REJECT
    assert DeletePolicy.parse("bogus") is DeletePolicy.ALLOW
    assert DeletePolicy.parse(None) is DeletePolicy.ALLOW


def test_search(books, members) -> None:
    assert [b.id for b in search_books(books, "hirata")] == ["1"]
    assert [b.id for b in search_books(books, "b002")] == ["2"]
    assert search_books(books, "") == books
    assert [m.id for m in search_members(members, "budi")] == ["M001"]
    assert [m.id for m in search_members(members, "1980")] == ["M002"]
