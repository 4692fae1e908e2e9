"""
Library state container and persistence contract.

``LibraryService`` owns the in-memory collections. Each mutating call runs a
pure domain operation, swaps in the returned collection, writes it in full
to the local record store and schedules a best-effort push of the same
snapshot to the spreadsheet mirror.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable

from epustaka.domains.library import catalog, circulation, inventory, stats
from epustaka.domains.library.catalog import DeletePolicy
from epustaka.domains.library.errors import RecordNotFoundError
from epustaka.domains.library.models import (
    BOOK_FIELDS,
    LOAN_FIELDS,
    MEMBER_FIELDS,
    REPORT_FIELDS,
    Book,
    Loan,
    Member,
    Report,
)
from epustaka.infrastructure.storage.record_store import RecordStore, parse_records
from epustaka.infrastructure.sync.sheets_mirror import (
    BOOKS_SHEET,
    LOANS_SHEET,
    MEMBERS_SHEET,
    REPORTS_SHEET,
    SheetsMirror,
    from_rows,
)
from epustaka.utils.config import delete_policy, finalize_fine_on_return, fine_per_day, loan_days
from epustaka.utils.logger import get_logger

logger = get_logger()


@dataclass
class LibraryState:
    books: list[Book] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    loans: list[Loan] = field(default_factory=list)
    reports: list[Report] = field(default_factory=list)


class LibraryService:
    def __init__(
        self,
        store: RecordStore,
        mirror: SheetsMirror,
        *,
        fine_per_day: int = circulation.FINE_PER_DAY,
        loan_days: int = circulation.DEFAULT_LOAN_DAYS,
        delete_policy: DeletePolicy = DeletePolicy.ALLOW,
        finalize_fine: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._mirror = mirror
        self.fine_per_day = fine_per_day
        self.loan_days = loan_days
        self.delete_policy = delete_policy
        self.finalize_fine = finalize_fine
        self._clock = clock
        self.state = LibraryState()

    @classmethod
    def from_config(cls, mirror: SheetsMirror | None = None) -> "LibraryService":
        """Build a service from .env settings. Pass a shared mirror to reuse its worker thread."""
        return cls(
            RecordStore(),
            mirror if mirror is not None else SheetsMirror(),
            fine_per_day=fine_per_day(),
            loan_days=loan_days(),
            delete_policy=DeletePolicy.parse(delete_policy()),
            finalize_fine=finalize_fine_on_return(),
        )

    @property
    def mirror(self) -> SheetsMirror:
        return self._mirror

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    # ---------------- Loading ----------------

    def load(self) -> LibraryState:
        """Read every collection from the local store (seed data where a slot is missing)."""
        self.state = LibraryState(
            books=self._store.get_books(),
            members=self._store.get_members(),
            loans=self._store.get_loans(),
            reports=self._store.get_reports(),
        )
        logger.info(
            "Loaded %d books, %d members, %d loans from %s",
            len(self.state.books), len(self.state.members), len(self.state.loans), self._store.root,
        )
        return self.state

    def refresh_from_remote(self) -> list[str]:
        """
        Replace local collections with the mirror's copy where it has one.

        Only fields that are arrays are applied; anything else is ignored.
        Rows that cannot be rebuilt (for example a loan with a blank due
        date) are dropped with a warning.
        Failures leave local data in place. Returns the names applied.
        """
        data = self._mirror.pull()
        if not data:
            return []
        applied: list[str] = []
        if isinstance(data.get(BOOKS_SHEET), list):
            self.state.books = parse_records(from_rows(data[BOOKS_SHEET]), Book.from_dict, BOOKS_SHEET)
            self._store.save_books(self.state.books)
            applied.append(BOOKS_SHEET)
        if isinstance(data.get(MEMBERS_SHEET), list):
            self.state.members = parse_records(from_rows(data[MEMBERS_SHEET]), Member.from_dict, MEMBERS_SHEET)
            self._store.save_members(self.state.members)
            applied.append(MEMBERS_SHEET)
        if isinstance(data.get(LOANS_SHEET), list):
            self.state.loans = parse_records(from_rows(data[LOANS_SHEET]), Loan.from_dict, LOANS_SHEET)
            self._store.save_loans(self.state.loans)
            applied.append(LOANS_SHEET)
        logger.info("Applied remote collections: %s", ", ".join(applied) or "none")
        return applied

    # ---------------- Persisting ----------------

    def _commit_books(self, books: list[Book]) -> None:
        self.state.books = books
        self._store.save_books(books)
        self._mirror.push_async(BOOKS_SHEET, [b.to_dict() for b in books], BOOK_FIELDS)

    def _commit_members(self, members: list[Member]) -> None:
        self.state.members = members
        self._store.save_members(members)
        self._mirror.push_async(MEMBERS_SHEET, [m.to_dict() for m in members], MEMBER_FIELDS)

    def _commit_circulation(self, loans: list[Loan], books: list[Book]) -> None:
        """
        Save a loan change and its availability change together.

        Both slots are written before state changes. If the books write fails
        the loans slot is put back, so disk and memory keep the old pair.
        """
        self._store.save_loans(loans)
        try:
            self._store.save_books(books)
        except OSError:
            logger.exception("Saving books failed; restoring previous loans")
            self._store.save_loans(self.state.loans)
            raise
        self.state.loans = loans
        self.state.books = books
        self._mirror.push_async(LOANS_SHEET, [l.to_dict() for l in loans], LOAN_FIELDS)
        self._mirror.push_async(BOOKS_SHEET, [b.to_dict() for b in books], BOOK_FIELDS)

    # ---------------- Lookups ----------------

    def get_book(self, book_id: str) -> Book:
        book = next((b for b in self.state.books if b.id == book_id), None)
        if book is None:
            raise RecordNotFoundError("Book", book_id)
        return book

    def get_member(self, member_id: str) -> Member:
        member = next((m for m in self.state.members if m.id == member_id), None)
        if member is None:
            raise RecordNotFoundError("Member", member_id)
        return member

    def loans_for_display(self, now: datetime | None = None) -> list[Loan]:
        """Loans with overdue status and fines derived for ``now``. Not persisted."""
        return circulation.evaluate_loans(self.state.loans, now or self.now(), self.fine_per_day)

    def lendable_books(self) -> list[Book]:
        return [b for b in self.state.books if b.available > 0]

    # ---------------- Catalog ----------------

    def add_book(self, **fields: Any) -> Book:
        books, book = catalog.add_book(self.state.books, **fields)
        self._commit_books(books)
        logger.info("Added book %s (%s)", book.id, book.title)
        return book

    def update_book(self, book_id: str, **changes: Any) -> Book:
        books, book = catalog.update_book(self.state.books, book_id, changes)
        self._commit_books(books)
        return book

    def delete_book(self, book_id: str) -> None:
        self._commit_books(
            catalog.delete_book(self.state.books, self.state.loans, book_id, self.delete_policy)
        )

    def add_member(self, **fields: Any) -> Member:
        members, member = catalog.add_member(self.state.members, **fields)
        self._commit_members(members)
        logger.info("Added member %s (%s)", member.id, member.name)
        return member

    def delete_member(self, member_id: str) -> None:
        self._commit_members(
            catalog.delete_member(self.state.members, self.state.loans, member_id, self.delete_policy)
        )

    # ---------------- Circulation ----------------

    def open_loan(
        self,
        member_id: str,
        book_id: str,
        loan_date: date | None = None,
        due_date: date | None = None,
    ) -> Loan:
        member = self.get_member(member_id)
        book = self.get_book(book_id)
        loans, books, loan = circulation.open_loan(
            self.state.loans,
            self.state.books,
            member,
            book,
            loan_date=loan_date or self.today(),
            due_date=due_date,
            loan_days=self.loan_days,
        )
        self._commit_circulation(loans, books)
        logger.info("Loan %s: %s -> %s due %s", loan.id, book.title, member.name, loan.due_date)
        return loan

    def return_loan(self, loan_id: str) -> Loan | None:
        loans, books, returned = circulation.return_loan(
            self.state.loans,
            self.state.books,
            loan_id,
            today=self.today(),
            finalize_fine=self.finalize_fine,
            fine_per_day=self.fine_per_day,
        )
        if returned is None:
            return None
        self._commit_circulation(loans, books)
        logger.info("Loan %s returned (fine %d)", loan_id, returned.fine)
        return returned

    # ---------------- Inventory ----------------

    def integrity_check(self) -> list[inventory.AvailabilityDiscrepancy]:
        found = inventory.find_discrepancies(self.state.books, self.state.loans)
        for d in found:
            logger.warning(
                "Availability mismatch for book %s: recorded %d, expected %d (count %d)",
                d.book_id, d.recorded, d.expected, d.count,
            )
        return found

    def reconcile_inventory(self) -> int:
        """Recompute availability from open loans. Returns how many books changed."""
        changed = len(inventory.find_discrepancies(self.state.books, self.state.loans))
        if changed:
            self._commit_books(inventory.reconcile(self.state.books, self.state.loans))
        return changed

    # ---------------- Reports ----------------

    def dashboard(self) -> dict[str, int]:
        return stats.dashboard_stats(self.state.books, self.loans_for_display(), self.state.members)

    def save_report(self, report: Report) -> list[Report]:
        self.state.reports = self._store.save_report(report)
        self._mirror.push_async(REPORTS_SHEET, [r.to_dict() for r in self.state.reports], REPORT_FIELDS)
        return self.state.reports
