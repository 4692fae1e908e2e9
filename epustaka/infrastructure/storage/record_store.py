"""
Local record store: one JSON array per slot under the data directory.

Stands in for the browser's local storage. Each slot holds the whole
collection and is overwritten on every save. Reading a missing or corrupt
slot returns the built-in default for that collection; a slot holding []
stays empty.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable

from epustaka.domains.library import seed
from epustaka.domains.library.models import Book, Loan, Member, Report
from epustaka.utils.config import data_dir, report_history_limit
from epustaka.utils.logger import get_logger

logger = get_logger()

BOOKS_KEY = "lib_books"
MEMBERS_KEY = "lib_members"
LOANS_KEY = "lib_loans"
REPORTS_KEY = "lib_reports_history"


def parse_records(rows: list[Any], factory: Callable[[dict[str, Any]], Any], source: str) -> list:
    """
    Rebuild records from raw dicts, skipping rows that are not objects or
    that the factory rejects with ValueError.
    """
    out = []
    for i, item in enumerate(rows):
        if not isinstance(item, dict):
            logger.warning("Skipping row %d of %s: not an object", i, source)
            continue
        try:
            out.append(factory(item))
        except ValueError as e:
            logger.warning("Skipping row %d of %s (id %r): %s", i, source, item.get("id"), e)
    return out


class RecordStore:
    """
    Key-value persistence of the books, members and loans collections plus
    the capped narrative-report history.
    """

    def __init__(self, root: Path | None = None, history_limit: int | None = None) -> None:
        self._root = Path(root) if root is not None else data_dir()
        self._history_limit = history_limit if history_limit is not None else report_history_limit()

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def read_slot(self, key: str) -> list[dict[str, Any]] | None:
        """Raw slot contents, or None when the slot is missing or unreadable."""
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Local slot %s unreadable, using defaults: %s", key, e)
            return None
        if not isinstance(data, list):
            logger.warning("Local slot %s is not a list, using defaults", key)
            return None
        return data

    def write_slot(self, key: str, rows: list[dict[str, Any]]) -> None:
        """Overwrite a slot atomically (temp file + replace)."""
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(rows, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
        logger.debug("Wrote %d record(s) to %s", len(rows), path)

    def _load(self, key: str, factory: Callable[[dict[str, Any]], Any], default: Callable[[], list]) -> list:
        raw = self.read_slot(key)
        if raw is None:
            return default()
        return parse_records(raw, factory, key)

    def get_books(self) -> list[Book]:
        return self._load(BOOKS_KEY, Book.from_dict, seed.initial_books)

    def save_books(self, books: list[Book]) -> None:
        self.write_slot(BOOKS_KEY, [b.to_dict() for b in books])

    def get_members(self) -> list[Member]:
        return self._load(MEMBERS_KEY, Member.from_dict, seed.initial_members)

    def save_members(self, members: list[Member]) -> None:
        self.write_slot(MEMBERS_KEY, [m.to_dict() for m in members])

    def get_loans(self) -> list[Loan]:
        return self._load(LOANS_KEY, Loan.from_dict, seed.initial_loans)

    def save_loans(self, loans: list[Loan]) -> None:
        self.write_slot(LOANS_KEY, [l.to_dict() for l in loans])

    def get_reports(self) -> list[Report]:
        return self._load(REPORTS_KEY, Report.from_dict, list)

    def save_report(self, report: Report) -> list[Report]:
        """Prepend a report and keep only the most recent entries. Returns the new history."""
        history = [report, *self.get_reports()][: self._history_limit]
        self.write_slot(REPORTS_KEY, [r.to_dict() for r in history])
        return history
