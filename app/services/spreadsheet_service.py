from __future__ import annotations

import csv
import io
import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import openpyxl

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import SpreadsheetDecodeError, UnsupportedFormatError
from app.domain.file_types import get_extension

logger = logging.getLogger(__name__)

CSV_DELIMITERS = ",;\t|"
CSV_SNIFF_CHARS = 64 * 1024
EMPTY_HEADER = "__EMPTY"


def _raise_csv_field_limit() -> int:
    # Cells are unbounded; the stdlib default caps a field at 131072 chars.
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return limit
        except OverflowError:
            limit //= 2


_raise_csv_field_limit()


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class OrderedRow:
    """Row read positionally; cells keep their column order."""

    cells: Tuple[Any, ...]

    @property
    def skippable(self) -> bool:
        return len(self.cells) == 0

    def to_text(self) -> str:
        return "\t".join(_cell_text(cell) for cell in self.cells)


@dataclass(frozen=True)
class KeyedRow:
    """Row keyed by column name; values are joined in insertion order."""

    cells: Mapping[str, Any]

    @property
    def skippable(self) -> bool:
        return False

    def to_text(self) -> str:
        return "\t".join(_cell_text(value) for value in self.cells.values())


SheetRow = Union[OrderedRow, KeyedRow]


class SpreadsheetService:
    def __init__(self, config: Optional[Settings] = None) -> None:
        config = config or default_settings
        self._header_row = bool(config.spreadsheet_header_row)

    def flatten(self, content: bytes, filename: str) -> str:
        ext = get_extension(filename)
        if ext == ".xlsx":
            return self.flatten_xlsx(content)
        if ext == ".csv":
            return self.flatten_csv(content)
        raise UnsupportedFormatError("Unsupported spreadsheet format")

    def flatten_xlsx(self, content: bytes) -> str:
        try:
            sheets, sheet_count = self._read_workbook(content)
        except Exception as exc:
            logger.warning("XLSX processing error: %s", exc)
            raise SpreadsheetDecodeError("Failed to process XLSX file") from exc

        out: List[str] = []
        multi_sheet = sheet_count > 1
        for sheet_name, rows in sheets:
            if multi_sheet:
                out.append(f"Sheet: {sheet_name}\n")
            for row in rows:
                if row.skippable:
                    continue
                out.append(row.to_text() + "\n")
            out.append("\n")
        return "".join(out)

    def flatten_csv(self, content: bytes) -> str:
        try:
            raw = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SpreadsheetDecodeError(f"Failed to process CSV file: {exc}") from exc

        dialect = self._sniff_dialect(raw)
        lines: List[str] = []
        try:
            # skipinitialspace drops unquoted leading padding; quoted text is kept verbatim.
            reader = csv.reader(io.StringIO(raw, newline=""), dialect, skipinitialspace=True)
            for values in reader:
                row = OrderedRow(tuple(values))
                if not any(cell.strip() for cell in row.cells):
                    continue
                lines.append(row.to_text())
        except csv.Error as exc:
            logger.warning("CSV processing error: %s", exc)
            raise SpreadsheetDecodeError(f"Failed to process CSV file: {exc}") from exc
        return "\n".join(lines)

    @staticmethod
    def _sniff_dialect(raw: str) -> Union[type, csv.Dialect]:
        sample = raw[:CSV_SNIFF_CHARS]
        try:
            return csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS)
        except csv.Error:
            # Single-column or ambiguous input; comma is the conventional default.
            return csv.excel

    def _read_workbook(self, content: bytes) -> Tuple[List[Tuple[str, List[SheetRow]]], int]:
        """Return data sheets in workbook order plus the count of all sheets, chartsheets included."""
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        try:
            sheets: List[Tuple[str, List[SheetRow]]] = []
            for ws in wb.worksheets:
                values = ws.iter_rows(values_only=True)
                rows = list(self._keyed_rows(values) if self._header_row else self._ordered_rows(values))
                sheets.append((ws.title, rows))
            return sheets, len(wb.sheetnames)
        finally:
            wb.close()

    @staticmethod
    def _ordered_rows(values: Iterable[Sequence[Any]]) -> Iterator[OrderedRow]:
        for raw in values:
            cells = list(raw)
            while cells and cells[-1] is None:
                cells.pop()
            yield OrderedRow(tuple(cells))

    @staticmethod
    def _keyed_rows(values: Iterable[Sequence[Any]]) -> Iterator[KeyedRow]:
        header: Optional[List[str]] = None
        for raw in values:
            if all(cell is None for cell in raw):
                continue
            if header is None:
                header = _column_names(raw)
                continue
            cells: Dict[str, Any] = {}
            for idx, value in enumerate(raw):
                if value is None:
                    continue
                key = header[idx] if idx < len(header) else f"{EMPTY_HEADER}_{idx}"
                cells[key] = value
            yield KeyedRow(cells)


def _column_names(raw: Sequence[Any]) -> List[str]:
    names: List[str] = []
    seen: Dict[str, int] = {}
    for cell in raw:
        base = _cell_text(cell).strip() or EMPTY_HEADER
        count = seen.get(base, 0)
        seen[base] = count + 1
        names.append(base if count == 0 else f"{base}_{count}")
    return names
