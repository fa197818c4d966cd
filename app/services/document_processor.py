from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union

from app.clients.tika_client import TikaClient
from app.domain.file_types import FileKind, classify, get_mime_type
from app.models.schemas import ProcessedDocument
from app.services.archive_service import ArchiveStore
from app.services.spreadsheet_service import SpreadsheetService

logger = logging.getLogger(__name__)


class DocumentProcessor:
    """Runs one upload through extraction, metadata lookup and archiving.

    Steps are strictly sequential; nothing is shared between requests except
    the archive directory.
    """

    def __init__(
        self,
        tika: TikaClient,
        spreadsheets: SpreadsheetService,
        archive: ArchiveStore,
    ) -> None:
        self.tika = tika
        self.spreadsheets = spreadsheets
        self.archive = archive

    async def process(
        self,
        content: bytes,
        filename: str,
        original_path: Union[str, Path],
    ) -> ProcessedDocument:
        kind = classify(filename)
        logger.info("Processing %s (%d bytes) as %s", filename, len(content), kind.value)
        if kind is FileKind.SPREADSHEET:
            return await self.process_spreadsheet(content, filename, original_path)
        return await self.process_document(content, filename, original_path)

    async def process_document(
        self,
        content: bytes,
        filename: str,
        original_path: Union[str, Path],
    ) -> ProcessedDocument:
        mime_type = get_mime_type(filename)
        text = await self.tika.extract_text(content, mime_type)
        metadata = await self.tika.extract_metadata(content, mime_type)
        return await self._complete(text, metadata, filename, mime_type, original_path)

    async def process_spreadsheet(
        self,
        content: bytes,
        filename: str,
        original_path: Union[str, Path],
    ) -> ProcessedDocument:
        mime_type = get_mime_type(filename)
        try:
            text = await asyncio.to_thread(self.spreadsheets.flatten, content, filename)
            metadata = await self.tika.extract_metadata(content, mime_type)
            return await self._complete(text, metadata, filename, mime_type, original_path)
        except Exception as exc:
            logger.error("Spreadsheet processing error for %s: %s", filename, exc)
            raise

    async def _complete(
        self,
        text: str,
        metadata: Dict[str, Any],
        filename: str,
        mime_type: str,
        original_path: Union[str, Path],
    ) -> ProcessedDocument:
        result = ProcessedDocument(
            content=text,
            metadata=metadata,
            filename=filename,
            mime_type=mime_type,
            processing_date=datetime.now(timezone.utc),
        )
        await asyncio.to_thread(self.archive.save, result, original_path)
        return result
