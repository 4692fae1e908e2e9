"""Built-in starter collections, returned by the record store when a slot is empty."""

from __future__ import annotations

from epustaka.domains.library.models import Book, Loan, LoanStatus, Member, MemberType


def initial_books() -> list[Book]:
    return [
        Book("1", "B001", "Laskar Pelangi", "Andrea Hirata", "Bentang Pustaka", 2005, "Fiction", 5, 4),
        Book("2", "B002", "Integrated Science Grade 8", "Tim Abdi Guru", "Erlangga", 2021, "Science", 40, 40),
        Book("3", "B003", "Mathematics Mastery", "Sutrisno", "Yudhistira", 2020, "Mathematics", 35, 32),
        Book("4", "B004", "Bumi", "Tere Liye", "Gramedia", 2014, "Fiction", 10, 9),
    ]


def initial_members() -> list[Member]:
    return [
        Member("M001", "12345", "Budi Santoso", "8-A", MemberType.STUDENT),
        Member("M002", "12346", "Siti Aminah", "9-B", MemberType.STUDENT),
        Member("M003", "19800101", "Mr. Ahmad", "Subject Teacher", MemberType.TEACHER),
    ]


def initial_loans() -> list[Loan]:
    return [
        Loan(
            id="L001",
            member_id="M001",
            member_name="Budi Santoso",
            book_id="1",
            book_title="Laskar Pelangi",
            loan_date="2023-10-01",
            due_date="2023-10-08",
            status=LoanStatus.BORROWED,
            fine=0,
        ),
    ]
