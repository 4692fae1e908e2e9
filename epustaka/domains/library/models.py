"""Data models for the library: books, members, loans and narrative reports.

Records are plain dataclasses. They are serialised with ``to_dict`` and rebuilt
with ``from_dict``, which tolerates the loose shapes that come back from the
spreadsheet mirror (extra columns, numbers stored as text, blank cells).
A loan without a valid loan or due date cannot be rebuilt and raises
``ValueError``; loaders skip such rows.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, Optional


class MemberType(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


class LoanStatus(str, Enum):
    BORROWED = "Borrowed"
    RETURNED = "Returned"
    OVERDUE = "Overdue"


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_str(value: Any) -> str:
    return "" if value is None else str(value)


def _to_iso_date(value: Any, name: str) -> str:
    """ISO date prefix of value. Raises ValueError when it is blank or not a date."""
    text = _to_str(value).strip()[:10]
    try:
        date.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid {name}: {value!r}") from None
    return text


def _known(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class Book:
    """A catalog entry. ``count`` copies are owned, ``available`` are on the shelf."""

    id: str
    code: str
    title: str
    author: str
    publisher: str
    year: int
    category: str
    count: int
    available: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Book":
        d = _known(cls, data)
        count = _to_int(d.get("count"))
        return cls(
            id=_to_str(d.get("id")),
            code=_to_str(d.get("code")),
            title=_to_str(d.get("title")),
            author=_to_str(d.get("author")),
            publisher=_to_str(d.get("publisher")),
            year=_to_int(d.get("year")),
            category=_to_str(d.get("category")),
            count=count,
            available=_to_int(d.get("available"), default=count),
        )


@dataclass
class Member:
    """A library member (student or teacher)."""

    id: str
    id_number: str  # institutional ID number
    name: str
    class_name: str  # class or position label
    type: MemberType = MemberType.STUDENT

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["type"] = MemberType(self.type).value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Member":
        d = _known(cls, data)
        raw_type = _to_str(d.get("type")).strip().lower()
        try:
            member_type = MemberType(raw_type)
        except ValueError:
            member_type = MemberType.STUDENT
        return cls(
            id=_to_str(d.get("id")),
            id_number=_to_str(d.get("id_number")),
            name=_to_str(d.get("name")),
            class_name=_to_str(d.get("class_name")),
            type=member_type,
        )


@dataclass
class Loan:
    """A circulation record.

    ``member_name`` and ``book_title`` are snapshots taken when the loan is
    opened; they do not follow later edits or deletion of the member/book.
    Dates are ISO ``YYYY-MM-DD`` strings.
    """

    id: str
    member_id: str
    member_name: str
    book_id: str
    book_title: str
    loan_date: str
    due_date: str
    return_date: Optional[str] = None
    status: LoanStatus = LoanStatus.BORROWED
    fine: int = 0

    @property
    def is_returned(self) -> bool:
        return self.return_date is not None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["status"] = LoanStatus(self.status).value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Loan":
        d = _known(cls, data)
        return_date = d.get("return_date") or None
        try:
            status = LoanStatus(_to_str(d.get("status")))
        except ValueError:
            status = LoanStatus.RETURNED if return_date else LoanStatus.BORROWED
        return cls(
            id=_to_str(d.get("id")),
            member_id=_to_str(d.get("member_id")),
            member_name=_to_str(d.get("member_name")),
            book_id=_to_str(d.get("book_id")),
            book_title=_to_str(d.get("book_title")),
            loan_date=_to_iso_date(d.get("loan_date"), "loan_date"),
            due_date=_to_iso_date(d.get("due_date"), "due_date"),
            return_date=_to_iso_date(return_date, "return_date") if return_date else None,
            status=status,
            fine=max(_to_int(d.get("fine")), 0),
        )


@dataclass
class Report:
    """A generated narrative report, kept in the capped report history."""

    timestamp: str
    librarian: str
    filter: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Report":
        d = _known(cls, data)
        return cls(**{f.name: _to_str(d.get(f.name)) for f in fields(cls)})


@dataclass
class User:
    """A signed-in UI user. Only the role matters to the app."""

    id: str
    name: str
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# Field order used for the spreadsheet header rows.
BOOK_FIELDS = [f.name for f in fields(Book)]
MEMBER_FIELDS = [f.name for f in fields(Member)]
LOAN_FIELDS = [f.name for f in fields(Loan)]
REPORT_FIELDS = [f.name for f in fields(Report)]
