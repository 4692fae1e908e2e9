"""
Catalog and roster maintenance: add/edit/delete books and members, and ID assignment.

All functions are pure: they take the current collection and return a new list.
Persistence is the caller's job (see ``LibraryService``).
"""

from __future__ import annotations

import re
from dataclasses import replace
from enum import Enum
from typing import Any

from epustaka.domains.library.errors import RecordInUseError, RecordNotFoundError
from epustaka.domains.library.models import Book, Loan, LoanStatus, Member, MemberType
from epustaka.utils.logger import get_logger

logger = get_logger()

BOOK_PREFIX, BOOK_ID_WIDTH = "", 1
MEMBER_PREFIX, MEMBER_ID_WIDTH = "M", 3
LOAN_PREFIX, LOAN_ID_WIDTH = "L", 3


class DeletePolicy(str, Enum):
    ALLOW = "allow"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: str | None) -> "DeletePolicy":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            logger.warning("Unknown delete policy %r, using allow", value)
            return cls.ALLOW


def next_id(existing_ids: list[str], prefix: str = "", width: int = 1) -> str:
    """
    Next identifier from a monotonic counter.

    Only ids of the form ``<prefix><digits>`` take part; anything else (for
    example random ids pulled from an older mirror) is ignored.

    Example:
        >>> next_id(["M001", "M002", "Mx9Q"], "M", 3)
        'M003'
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    numbers = [int(m.group(1)) for m in (pattern.match(i or "") for i in existing_ids) if m]
    return f"{prefix}{max(numbers, default=0) + 1:0{width}d}"


def _open_loans(loans: list[Loan], attr: str, record_id: str) -> list[str]:
    return [
        l.id for l in loans
        if getattr(l, attr) == record_id and l.status != LoanStatus.RETURNED
    ]


def add_book(
    books: list[Book],
    *,
    code: str,
    title: str,
    author: str,
    publisher: str,
    year: int,
    category: str,
    count: int,
) -> tuple[list[Book], Book]:
    """Append a new book; every copy starts on the shelf."""
    book = Book(
        id=next_id([b.id for b in books], BOOK_PREFIX, BOOK_ID_WIDTH),
        code=code,
        title=title,
        author=author,
        publisher=publisher,
        year=int(year),
        category=category,
        count=int(count),
        available=int(count),
    )
    return [*books, book], book


def update_book(books: list[Book], book_id: str, changes: dict[str, Any]) -> tuple[list[Book], Book]:
    """Edit a book. Changing ``count`` shifts ``available`` by the same amount (floored at 0)."""
    book = next((b for b in books if b.id == book_id), None)
    if book is None:
        raise RecordNotFoundError("Book", book_id)
    allowed = {"code", "title", "author", "publisher", "year", "category", "count", "available"}
    updates = {k: v for k, v in changes.items() if k in allowed}
    if "year" in updates:
        updates["year"] = int(updates["year"])
    if "count" in updates and "available" not in updates:
        new_count = int(updates["count"])
        updates["count"] = new_count
        updates["available"] = max(book.available + (new_count - book.count), 0)
    updated = replace(book, **updates)
    return [updated if b.id == book_id else b for b in books], updated


def delete_book(
    books: list[Book],
    loans: list[Loan],
    book_id: str,
    policy: DeletePolicy = DeletePolicy.ALLOW,
) -> list[Book]:
    """Remove a book by id. Loans keep their own title snapshot either way."""
    open_ids = _open_loans(loans, "book_id", book_id)
    if open_ids:
        if policy == DeletePolicy.REJECT:
            raise RecordInUseError("Book", book_id, open_ids)
        logger.warning("Deleting book %s with open loans %s", book_id, open_ids)
    return [b for b in books if b.id != book_id]


def add_member(
    members: list[Member],
    *,
    id_number: str,
    name: str,
    class_name: str,
    type: MemberType | str = MemberType.STUDENT,
) -> tuple[list[Member], Member]:
    member = Member(
        id=next_id([m.id for m in members], MEMBER_PREFIX, MEMBER_ID_WIDTH),
        id_number=id_number,
        name=name,
        class_name=class_name,
        type=MemberType(type),
    )
    return [*members, member], member


def delete_member(
    members: list[Member],
    loans: list[Loan],
    member_id: str,
    policy: DeletePolicy = DeletePolicy.ALLOW,
) -> list[Member]:
    open_ids = _open_loans(loans, "member_id", member_id)
    if open_ids:
        if policy == DeletePolicy.REJECT:
            raise RecordInUseError("Member", member_id, open_ids)
        logger.warning("Deleting member %s with open loans %s", member_id, open_ids)
    return [m for m in members if m.id != member_id]


def search_books(books: list[Book], term: str) -> list[Book]:
    if not term:
        return books
    t = term.lower()
    return [
        b for b in books
        if t in (b.title or "").lower() or t in (b.author or "").lower() or t in (b.code or "").lower()
    ]


def search_members(members: list[Member], term: str) -> list[Member]:
    if not term:
        return members
    t = term.lower()
    return [m for m in members if t in m.name.lower() or t in m.id_number]
