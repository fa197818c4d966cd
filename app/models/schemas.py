from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Tika returns scalars, or lists of strings for repeated keys.
MetadataValue = Union[str, int, float, bool, None, List[Any]]


class ProcessedDocument(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: str
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)
    filename: str
    mime_type: str = Field(alias="mimeType")
    processing_date: datetime = Field(alias="processingDate")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ArchiveRecord(BaseModel):
    """On-disk JSON shape of a completed document."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)
    original_filename: str = Field(alias="originalFilename")
    mime_type: str = Field(alias="mimeType")
    processing_date: datetime = Field(alias="processingDate")

    @classmethod
    def from_document(cls, doc: ProcessedDocument) -> "ArchiveRecord":
        return cls(
            content=doc.content,
            metadata=dict(doc.metadata),
            original_filename=doc.filename,
            mime_type=doc.mime_type,
            processing_date=doc.processing_date,
        )


class ArchiveEntry(BaseModel):
    name: str
    record_path: Path
    original_path: Path


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    tika: str
