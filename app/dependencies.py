from __future__ import annotations
from typing import Optional

from app.clients.tika_client import TikaClient
from app.core.config import Settings, settings as default_settings
from app.services.archive_service import ArchiveStore
from app.services.document_processor import DocumentProcessor
from app.services.spreadsheet_service import SpreadsheetService


class Container:
    def __init__(self, config: Optional[Settings] = None, tika: Optional[TikaClient] = None) -> None:
        self.settings = config or default_settings
        self.tika = tika or TikaClient(self.settings)
        self.spreadsheets = SpreadsheetService(self.settings)
        self.archive = ArchiveStore(self.settings)
        self.archive.ensure_root()
        self.processor = DocumentProcessor(
            tika=self.tika,
            spreadsheets=self.spreadsheets,
            archive=self.archive,
        )

    async def close(self) -> None:
        await self.tika.close()
