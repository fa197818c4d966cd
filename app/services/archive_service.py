from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Optional, Tuple, Union

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import PersistenceError
from app.models.schemas import ArchiveEntry, ArchiveRecord, ProcessedDocument

logger = logging.getLogger(__name__)

ORIGINALS_DIRNAME = "originals"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def archive_timestamp(moment: datetime) -> str:
    """Filesystem-safe, lexically sortable form of an ISO-8601 UTC instant.

    ``2024-03-01T09:15:42.123Z`` becomes ``2024-03-01T09-15-42-123Z``.
    """
    moment = moment.astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def safe_basename(filename: str) -> str:
    name = PurePath((filename or "").replace("\\", "/")).name
    return name or "upload"


class ArchiveStore:
    """Append-only archive of completed documents.

    Layout::

        <root>/<timestamp>_<name>.json
        <root>/originals/<timestamp>_<name>

    The record and the copy are written independently; a failure in the
    second step leaves the first on disk.
    """

    def __init__(self, config: Optional[Settings] = None) -> None:
        config = config or default_settings
        self._root = Path(config.completed_dir)
        self._originals = self._root / ORIGINALS_DIRNAME

    @property
    def root(self) -> Path:
        return self._root

    @property
    def originals_dir(self) -> Path:
        return self._originals

    def ensure_root(self) -> None:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Failed to create archive directory {self._root}: {exc}") from exc

    def save(self, result: ProcessedDocument, original_path: Union[str, Path]) -> ArchiveEntry:
        stamp = archive_timestamp(_utcnow())
        filename = safe_basename(result.filename)
        payload = ArchiveRecord.from_document(result).model_dump_json(by_alias=True, indent=2)

        try:
            self._root.mkdir(parents=True, exist_ok=True)
            name, record_path = self._write_record(stamp, filename, payload)
        except OSError as exc:
            raise PersistenceError(f"Failed to write archive record: {exc}") from exc

        original_copy = self._originals / name
        try:
            self._originals.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(original_path, original_copy)
        except OSError as exc:
            logger.error("Archive record %s written but original copy failed: %s", record_path, exc)
            raise PersistenceError(f"Failed to copy original file: {exc}") from exc

        logger.info("Archived %s as %s", result.filename, name)
        return ArchiveEntry(name=name, record_path=record_path, original_path=original_copy)

    def _write_record(self, stamp: str, filename: str, payload: str) -> Tuple[str, Path]:
        # Exclusive create; a concurrent request with the same name gets a numeric suffix.
        attempt = 0
        while True:
            name = f"{stamp}_{filename}" if attempt == 0 else f"{stamp}-{attempt}_{filename}"
            record_path = self._root / f"{name}.json"
            try:
                with record_path.open("x", encoding="utf-8") as fh:
                    fh.write(payload)
                return name, record_path
            except FileExistsError:
                attempt += 1
