from __future__ import annotations

from enum import Enum
from pathlib import PurePath
from typing import Dict, FrozenSet

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: Dict[str, str] = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".txt": "text/plain",
    ".csv": "text/csv",
}

SPREADSHEET_EXTENSIONS: FrozenSet[str] = frozenset({".xlsx", ".csv"})


class FileKind(str, Enum):
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"


def get_extension(filename: str) -> str:
    # Clients may send Windows-style paths; only the last component matters.
    name = (filename or "").replace("\\", "/")
    return PurePath(name).suffix.lower()


def get_mime_type(filename: str) -> str:
    return MIME_TYPES.get(get_extension(filename), DEFAULT_MIME_TYPE)


def classify(filename: str) -> FileKind:
    if get_extension(filename) in SPREADSHEET_EXTENSIONS:
        return FileKind.SPREADSHEET
    return FileKind.DOCUMENT
