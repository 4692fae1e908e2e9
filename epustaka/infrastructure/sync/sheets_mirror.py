"""
Spreadsheet mirror client: best-effort push of whole collections and a one-shot pull.

The endpoint is a spreadsheet web app (for example a Google Apps Script
deployment). Pushes POST ``{"collectionName": ..., "rows": [...]}`` where
``rows`` is a header row of field names followed by one row per record. The
pull is a single GET returning ``{"Books": [...], "Members": [...], "Loans": [...]}``.

Nothing here raises on transport problems: failures are logged and recorded
as a ``SyncStatus`` so the UI can show the last outcome per collection.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import requests

from epustaka.utils.config import sheets_sync_timeout, sheets_sync_url
from epustaka.utils.logger import get_logger

logger = get_logger()

BOOKS_SHEET = "Books"
MEMBERS_SHEET = "Members"
LOANS_SHEET = "Loans"
REPORTS_SHEET = "Reports"

_UNSET = object()


def _redact_url(url: str) -> str:
    # Apps Script deployment ids act as credentials; keep them out of the logs.
    if not url:
        return url
    base = url.split("?", 1)[0]
    if "/macros/s/" in base:
        head, _, tail = base.partition("/macros/s/")
        deployment = tail.split("/", 1)[0]
        return f"{head}/macros/s/{deployment[:6]}…/exec"
    return base


def to_rows(records: list[dict[str, Any]], header: list[str]) -> list[list[Any]]:
    """Header row followed by one row per record, in header order."""
    rows: list[list[Any]] = [list(header)]
    for rec in records:
        rows.append(["" if rec.get(k) is None else rec.get(k) for k in header])
    return rows


def from_rows(data: list[Any]) -> list[dict[str, Any]]:
    """
    Normalise a pulled collection to a list of dicts.

    Accepts either a list of objects or a header-first list of lists (the
    shape this client pushes).
    """
    if not data:
        return []
    if isinstance(data[0], list):
        header = [str(h) for h in data[0]]
        return [dict(zip(header, row)) for row in data[1:] if isinstance(row, list)]
    return [d for d in data if isinstance(d, dict)]


@dataclass(frozen=True)
class SyncStatus:
    collection: str
    success: bool
    message: str
    at: str


class SheetsMirror:
    """
    Remote mirror over HTTP.

    Pushes go through a single-worker executor so they never block the UI and
    reach the endpoint in submission order. Pass ``background=False`` to run
    pushes inline (tests, scripts).
    """

    def __init__(
        self,
        url: str | None | object = _UNSET,
        timeout: int | None = None,
        background: bool = True,
    ) -> None:
        self._url = sheets_sync_url() if url is _UNSET else url
        self._timeout = timeout if timeout is not None else sheets_sync_timeout()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sheets-mirror") if background else None
        self._lock = threading.Lock()
        self._status: dict[str, SyncStatus] = {}

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def _record(self, collection: str, success: bool, message: str) -> SyncStatus:
        st = SyncStatus(collection, success, message, datetime.now().isoformat(timespec="seconds"))
        with self._lock:
            self._status[collection] = st
        return st

    def status(self) -> dict[str, SyncStatus]:
        """Last push outcome per collection."""
        with self._lock:
            return dict(self._status)

    def push(self, collection: str, records: list[dict[str, Any]], header: list[str]) -> SyncStatus:
        """Send one collection snapshot. Never raises."""
        if not self._url:
            logger.warning("Mirror push skipped for %s: SHEETS_SYNC_URL not set", collection)
            return self._record(collection, False, "Remote mirror not configured")

        payload = {"collectionName": collection, "rows": to_rows(records, header)}
        try:
            logger.info("Pushing %d %s record(s) to %s", len(records), collection, _redact_url(self._url))
            response = requests.post(
                self._url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
            status_code = getattr(response, "status_code", None)
            if status_code is not None and status_code >= 400:
                logger.warning("Mirror push for %s answered HTTP %s", collection, status_code)
                return self._record(collection, False, f"HTTP {status_code}")
            logger.info("Mirror push for %s done (HTTP %s)", collection, status_code)
            return self._record(collection, True, f"Synced {len(records)} record(s)")
        except requests.exceptions.RequestException as e:
            if isinstance(e, requests.exceptions.ConnectionError):
                detail = f"Connection failed: could not reach {_redact_url(self._url)}"
            elif isinstance(e, requests.exceptions.Timeout):
                detail = f"Request timed out after {self._timeout} seconds"
            else:
                detail = f"{type(e).__name__}: {e}"
            logger.exception("Mirror push for %s failed: %s", collection, detail)
            return self._record(collection, False, detail)

    def push_async(self, collection: str, records: list[dict[str, Any]], header: list[str]) -> Future | None:
        """Schedule a push and return immediately. Inline when built with background=False."""
        if self._executor is None:
            self.push(collection, records, header)
            return None
        return self._executor.submit(self.push, collection, records, header)

    def pull(self) -> dict[str, Any] | None:
        """Fetch the full remote snapshot. Returns None on any failure."""
        if not self._url:
            logger.info("Mirror pull skipped: SHEETS_SYNC_URL not set")
            return None
        try:
            response = requests.get(self._url, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.exception("Mirror pull failed: %s", e)
            return None
        except ValueError as e:
            logger.warning("Mirror pull returned invalid JSON: %s", e)
            return None
        if not isinstance(data, dict):
            logger.warning("Mirror pull returned %s, expected an object", type(data).__name__)
            return None
        return data

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
