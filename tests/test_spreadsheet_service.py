from __future__ import annotations

import io

import openpyxl
from openpyxl.chart import BarChart, Reference
import pytest

from app.core.config import Settings
from app.core.exceptions import SpreadsheetDecodeError, UnsupportedFormatError
from app.services.spreadsheet_service import KeyedRow, OrderedRow, SpreadsheetService


def _workbook_bytes(sheets: dict) -> bytes:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _service(header_row: bool = False) -> SpreadsheetService:
    return SpreadsheetService(Settings(spreadsheet_header_row=header_row))


def test_multi_sheet_workbook_emits_sheet_headers_in_order():
    data = _workbook_bytes({"A": [["x", 1], ["y", 2]], "B": [["z", True]]})

    text = _service().flatten(data, "book.xlsx")

    assert text == "Sheet: A\nx\t1\ny\t2\n\nSheet: B\nz\ttrue\n\n"
    assert text.index("Sheet: A") < text.index("Sheet: B")


def test_single_sheet_workbook_has_no_sheet_header():
    data = _workbook_bytes({"Only": [["name", "qty"], ["bolt", 40]]})

    text = _service().flatten(data, "single.XLSX")

    assert "Sheet:" not in text
    assert text == "name\tqty\nbolt\t40\n\n"


def test_blank_rows_are_skipped_and_gaps_render_empty():
    data = _workbook_bytes({"S": [["a", None, "c"], [None, None, None], ["d"]]})

    text = _service().flatten(data, "gaps.xlsx")

    assert text == "a\t\tc\nd\n\n"


def test_header_row_mode_joins_keyed_values_in_column_order():
    data = _workbook_bytes({"S": [["zeta", "alpha"], ["1", "2"], ["3", None]]})

    text = _service(header_row=True).flatten(data, "keyed.xlsx")

    assert text == "1\t2\n3\n\n"


def test_malformed_xlsx_raises_decode_error():
    with pytest.raises(SpreadsheetDecodeError, match="Failed to process XLSX file"):
        _service().flatten(b"definitely not a zip archive", "broken.xlsx")


def test_csv_drops_blank_rows_and_tab_joins_cells():
    assert _service().flatten(b"a,b\n\n c,d", "rows.csv") == "a\tb\nc\td"


def test_csv_detects_semicolon_delimiter():
    data = "name;city\nAnna;Kraków\nBob;Oslo\n".encode("utf-8")

    assert _service().flatten(data, "people.csv") == "name\tcity\nAnna\tKraków\nBob\tOslo"


def test_csv_single_column_and_bom_are_handled():
    data = "\ufeffheader\nvalue\n".encode("utf-8")

    assert _service().flatten(data, "one.csv") == "header\nvalue"


def test_csv_invalid_utf8_raises_decode_error():
    with pytest.raises(SpreadsheetDecodeError):
        _service().flatten(b"a,b\n\xff\xfe,c\n", "bad.csv")


def test_unsupported_spreadsheet_extension_is_rejected():
    with pytest.raises(UnsupportedFormatError, match="Unsupported spreadsheet format"):
        _service().flatten(b"whatever", "legacy.xls")


def test_row_variants_flatten_without_type_inspection():
    assert OrderedRow(("a", None, 3)).to_text() == "a\t\t3"
    assert OrderedRow(()).skippable is True
    keyed = KeyedRow({"z": "last-key-first", "a": False})
    assert keyed.to_text() == "last-key-first\tfalse"
    assert keyed.skippable is False


def test_csv_cell_larger_than_default_field_limit_is_kept():
    big = "x" * 200_000
    data = f"a,b\n{big},c\n".encode("utf-8")

    text = _service().flatten(data, "big.csv")

    assert text == f"a\tb\n{big}\tc"


def test_csv_keeps_whitespace_inside_quoted_fields():
    data = b'id,label\n1,"  padded  "\n2, bare\n'

    assert _service().flatten(data, "quoted.csv") == "id\tlabel\n1\t  padded  \n2\tbare"


def test_chartsheet_counts_towards_sheet_headers():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Data"
    for row in (["month", "sales"], ["jan", 10], ["feb", 12]):
        ws.append(row)
    chart = BarChart()
    chart.add_data(Reference(ws, min_col=2, min_row=1, max_row=3), titles_from_data=True)
    wb.create_chartsheet("Chart").add_chart(chart)
    buf = io.BytesIO()
    wb.save(buf)

    text = _service().flatten(buf.getvalue(), "charted.xlsx")

    assert text == "Sheet: Data\nmonth\tsales\njan\t10\nfeb\t12\n\n"
