"""
Tests for the local record store: slots, seeding, corruption handling and report history.
"""

from __future__ import annotations

import json

from epustaka.domains.library.models import Report
from epustaka.infrastructure.storage.record_store import (
    BOOKS_KEY,
    LOANS_KEY,
    REPORTS_KEY,
    RecordStore,
)


def test_missing_slots_return_seed_data(store) -> None:
    books = store.get_books()
    assert [b.id for b in books] == ["1", "2", "3", "4"]
    assert [m.id for m in store.get_members()] == ["M001", "M002", "M003"]
    assert [l.id for l in store.get_loans()] == ["L001"]
    assert store.get_reports() == []


def test_round_trip_under_expected_keys(store, books, borrowed_loan) -> None:
    store.save_books(books)
    store.save_loans([borrowed_loan])
    assert (store.root / f"{BOOKS_KEY}.json").is_file()
    assert store.get_books() == books
    assert store.get_loans() == [borrowed_loan]

    raw = json.loads((store.root / f"{LOANS_KEY}.json").read_text(encoding="utf-8"))
    assert raw[0]["status"] == "Borrowed"
    assert raw[0]["return_date"] is None


def test_empty_slot_stays_empty(store) -> None:
    store.save_books([])
    assert store.get_books() == []


def test_corrupt_slot_falls_back_to_defaults(store) -> None:
    store.root.mkdir(parents=True, exist_ok=True)
    (store.root / f"{BOOKS_KEY}.json").write_text("{not json", encoding="utf-8")
    (store.root / f"{LOANS_KEY}.json").write_text('{"L001": {}}', encoding="utf-8")
    assert len(store.get_books()) == 4
    assert store.read_slot(LOANS_KEY) is None


def test_write_leaves_no_temp_file(store, books) -> None:
    store.save_books(books)
    assert sorted(p.name for p in store.root.iterdir()) == [f"{BOOKS_KEY}.json"]


def test_report_history_is_capped_newest_first(tmp_path) -> None:
    store = RecordStore(root=tmp_path, history_limit=50)
    for i in range(60):
        history = store.save_report(Report(f"2024-03-15 10:00:{i:02d}", "Bu Rina", "Period: All time", f"report {i}"))
    assert len(history) == 50
    stored = store.get_reports()
    assert len(stored) == 50
    assert stored[0].content == "report 59"
    assert stored[-1].content == "report 10"
    assert (tmp_path / f"{REPORTS_KEY}.json").is_file()


def test_loan_rows_with_bad_dates_are_skipped(store, borrowed_loan) -> None:
    bad = dict(borrowed_loan.to_dict(), id="L002", due_date="")
    worse = dict(borrowed_loan.to_dict(), id="L003", loan_date="someday")
    store.write_slot(LOANS_KEY, [borrowed_loan.to_dict(), bad, worse, "not a row"])
    assert store.get_loans() == [borrowed_loan]
