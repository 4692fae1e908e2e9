"""
Shared fixtures: a record store in a temp dir, an inline (non-background)
mirror with no URL, and a service pinned to a fixed clock.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from epustaka.domains.library.models import Book, Loan, LoanStatus, Member, MemberType
from epustaka.infrastructure.storage.record_store import RecordStore
from epustaka.infrastructure.sync.sheets_mirror import SheetsMirror
from epustaka.services.library_service import LibraryService

NOW = datetime(2024, 3, 15, 10, 0, 0)


@pytest.fixture
def store(tmp_path: Path) -> RecordStore:
    return RecordStore(root=tmp_path / "data", history_limit=50)


@pytest.fixture
def mirror() -> SheetsMirror:
    return SheetsMirror(url=None, timeout=5, background=False)


@pytest.fixture
def books() -> list[Book]:
    return [
        Book("1", "B001", "Laskar Pelangi", "Andrea Hirata", "Bentang Pustaka", 2005, "Fiction", 5, 5),
        Book("2", "B002", "Integrated Science", "Tim Abdi Guru", "Erlangga", 2021, "Science", 2, 2),
    ]


@pytest.fixture
def members() -> list[Member]:
    return [
        Member("M001", "12345", "Budi Santoso", "8-A", MemberType.STUDENT),
        Member("M002", "19800101", "Mr. Ahmad", "Subject Teacher", MemberType.TEACHER),
    ]


@pytest.fixture
def borrowed_loan() -> Loan:
    return Loan(
        id="L001",
        member_id="M001",
        member_name="Budi Santoso",
        book_id="1",
        book_title="Laskar Pelangi",
        loan_date="2024-03-01",
        due_date="2024-03-08",
        status=LoanStatus.BORROWED,
        fine=0,
    )


@pytest.fixture
def service(store: RecordStore, mirror: SheetsMirror, books: list[Book], members: list[Member]) -> LibraryService:
    svc = LibraryService(store, mirror, fine_per_day=500, loan_days=7, clock=lambda: NOW)
    svc.load()
    svc.state.books = list(books)
    svc.state.members = list(members)
    svc.state.loans = []
    return svc
