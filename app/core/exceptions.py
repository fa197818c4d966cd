from __future__ import annotations


class DocumentProcessingError(Exception):
    """Base class for every failure in the processing pipeline."""


class ExtractionError(DocumentProcessingError):
    """Tika text extraction returned a non-success status or was unreachable."""


class MetadataError(DocumentProcessingError):
    """Tika metadata extraction returned a non-success status or was unreachable."""


class SpreadsheetDecodeError(DocumentProcessingError):
    """An XLSX or CSV payload could not be parsed."""


class UnsupportedFormatError(DocumentProcessingError):
    """A file routed to the spreadsheet path is neither XLSX nor CSV."""


class PersistenceError(DocumentProcessingError):
    """Writing the archive record or copying the original failed."""
