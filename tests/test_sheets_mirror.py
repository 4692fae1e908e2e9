"""
Tests for the spreadsheet mirror client (HTTP mocked).
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import requests

from epustaka.domains.library.models import BOOK_FIELDS
from epustaka.infrastructure.sync.sheets_mirror import (
    SheetsMirror,
    _redact_url,
    from_rows,
    to_rows,
)

URL = "https://script.google.com/macros/s/AKfycbxSECRETDEPLOYMENT/exec"


def _mirror() -> SheetsMirror:
    return SheetsMirror(url=URL, timeout=5, background=False)


def test_to_rows_puts_header_first() -> None:
    rows = to_rows([{"id": "1", "title": "Bumi", "extra": 1}, {"id": "2"}], ["id", "title"])
    assert rows == [["id", "title"], ["1", "Bumi"], ["2", ""]]


def test_from_rows_accepts_objects_and_tables() -> None:
    assert from_rows([{"id": "1"}, "junk"]) == [{"id": "1"}]
    assert from_rows([["id", "title"], ["1", "Bumi"], "junk"]) == [{"id": "1", "title": "Bumi"}]
    assert from_rows([]) == []


def test_redact_url_hides_deployment_id() -> None:
    redacted = _redact_url(URL + "?key=abc")
    assert "SECRETDEPLOYMENT" not in redacted
    assert "key=abc" not in redacted


@patch("epustaka.infrastructure.sync.sheets_mirror.requests.post")
def test_push_sends_collection_snapshot(mock_post: MagicMock, books) -> None:
    mock_post.return_value = MagicMock(status_code=200)
    status = _mirror().push("Books", [b.to_dict() for b in books], BOOK_FIELDS)

    assert status.success
    payload = mock_post.call_args.kwargs["json"]
    assert payload["collectionName"] == "Books"
    assert payload["rows"][0] == BOOK_FIELDS
    assert len(payload["rows"]) == 3
    assert payload["rows"][1][BOOK_FIELDS.index("title")] == "Laskar Pelangi"
    assert mock_post.call_args.kwargs["timeout"] == 5


@patch("epustaka.infrastructure.sync.sheets_mirror.requests.post")
def test_push_failure_is_recorded_not_raised(mock_post: MagicMock) -> None:
    mirror = _mirror()
    mock_post.side_effect = requests.exceptions.ConnectionError("refused")
    status = mirror.push("Loans", [], ["id"])
    assert not status.success
    assert "Connection failed" in status.message
    assert "SECRETDEPLOYMENT" not in status.message
    assert mirror.status()["Loans"] == status

    mock_post.side_effect = None
    mock_post.return_value = MagicMock(status_code=500)
    assert mirror.push("Loans", [], ["id"]).message == "HTTP 500"


@patch("epustaka.infrastructure.sync.sheets_mirror.requests.post")
def test_unconfigured_mirror_skips_network(mock_post: MagicMock, mirror) -> None:
    assert not mirror.enabled
    status = mirror.push("Books", [], ["id"])
    assert not status.success
    assert status.message == "Remote mirror not configured"
    assert mirror.pull() is None
    mock_post.assert_not_called()


@patch("epustaka.infrastructure.sync.sheets_mirror.requests.post")
def test_background_push_completes(mock_post: MagicMock) -> None:
    mock_post.return_value = MagicMock(status_code=200)
    mirror = SheetsMirror(url=URL, timeout=5, background=True)
    try:
        future = mirror.push_async("Members", [{"id": "M001"}], ["id"])
        assert future.result(timeout=5).success
    finally:
        mirror.shutdown()
    assert mirror.status()["Members"].success


@patch("epustaka.infrastructure.sync.sheets_mirror.requests.get")
def test_pull_returns_object_or_none(mock_get: MagicMock) -> None:
    mock_get.return_value = MagicMock(json=MagicMock(return_value={"Books": []}))
    assert _mirror().pull() == {"Books": []}

    mock_get.return_value = MagicMock(json=MagicMock(return_value=["not", "an", "object"]))
    assert _mirror().pull() is None

    mock_get.side_effect = requests.exceptions.Timeout()
    assert _mirror().pull() is None
