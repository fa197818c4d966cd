from __future__ import annotations

import asyncio

import pytest

from app.core.config import Settings
from app.core.exceptions import ExtractionError, UnsupportedFormatError
from app.services.document_processor import DocumentProcessor
from app.services.spreadsheet_service import SpreadsheetService


class _FakeTika:
    def __init__(self, fail_text: bool = False) -> None:
        self.fail_text = fail_text
        self.steps: list[str] = []

    async def extract_text(self, content: bytes, mime_type: str) -> str:
        self.steps.append(f"text:{mime_type}")
        if self.fail_text:
            raise ExtractionError("Failed to extract text: Bad Gateway")
        return content.decode("utf-8").upper()

    async def extract_metadata(self, content: bytes, mime_type: str) -> dict:
        self.steps.append(f"meta:{mime_type}")
        return {"Content-Length": len(content)}


class _FakeArchive:
    def __init__(self) -> None:
        self.saved = []

    def save(self, result, original_path):
        self.saved.append((result, original_path))


def _processor(tika: _FakeTika, archive: _FakeArchive) -> DocumentProcessor:
    return DocumentProcessor(tika=tika, spreadsheets=SpreadsheetService(Settings()), archive=archive)


def test_document_path_extracts_then_fetches_metadata_then_archives():
    tika, archive = _FakeTika(), _FakeArchive()

    result = asyncio.run(_processor(tika, archive).process(b"plain words", "Notes.TXT", "/tmp/staged"))

    assert tika.steps == ["text:text/plain", "meta:text/plain"]
    assert result.content == "PLAIN WORDS"
    assert result.metadata == {"Content-Length": 11}
    assert result.filename == "Notes.TXT"
    assert result.mime_type == "text/plain"
    assert archive.saved == [(result, "/tmp/staged")]


def test_spreadsheet_path_only_asks_remote_for_metadata():
    tika, archive = _FakeTika(), _FakeArchive()

    result = asyncio.run(_processor(tika, archive).process(b"x,y\n1,2\n", "grid.csv", "/tmp/staged"))

    assert tika.steps == ["meta:text/csv"]
    assert result.content == "x\ty\n1\t2"
    assert len(archive.saved) == 1


def test_unknown_extension_goes_to_remote_with_octet_stream():
    tika, archive = _FakeTika(), _FakeArchive()

    result = asyncio.run(_processor(tika, archive).process(b"blob", "image.bin", "/tmp/staged"))

    assert result.mime_type == "application/octet-stream"
    assert tika.steps[0] == "text:application/octet-stream"


def test_extraction_error_stops_pipeline_before_archiving():
    tika, archive = _FakeTika(fail_text=True), _FakeArchive()

    with pytest.raises(ExtractionError, match="Bad Gateway"):
        asyncio.run(_processor(tika, archive).process(b"%PDF", "scan.pdf", "/tmp/staged"))

    assert tika.steps == ["text:application/pdf"]
    assert archive.saved == []


def test_spreadsheet_path_rejects_non_spreadsheet_extension():
    tika, archive = _FakeTika(), _FakeArchive()

    with pytest.raises(UnsupportedFormatError):
        asyncio.run(_processor(tika, archive).process_spreadsheet(b"data", "legacy.ods", "/tmp/staged"))

    assert tika.steps == []
    assert archive.saved == []
