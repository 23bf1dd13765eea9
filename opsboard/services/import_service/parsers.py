"""Tabular reader: decode CSV, XLSX and XLS uploads into raw rows."""

import csv
import io
import itertools
import logging
import zipfile
from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime, time
from typing import Any

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .constants import ALLOWED_EXTENSIONS, MAX_ROWS
from .errors import FormatError
from .records import RawRow

logger = logging.getLogger(__name__)

XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
CSV_DELIMITERS = ",;\t|"

# headers, data rows (lists of cell values), close callback
_Table = tuple[list[str], Iterable[list[Any]], Callable[[], None]]


def get_file_extension(filename: str | None) -> str:
    """Extract the lowercase file extension from a filename."""
    if not filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def cell_to_text(value: Any) -> str:
    """Render a cell value as the text an operator would see in the sheet.

    Dates are rendered ISO style so the temporal parser accepts them;
    a datetime at midnight is treated as a date-only cell.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _open_csv(content: bytes) -> _Table:
    """Decode CSV bytes, trying UTF-8 (with or without BOM) then Latin-1."""
    if b"\x00" in content[:4096]:
        raise FormatError("File is not a text CSV file")

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")

    sample = text[:4096]
    try:
        dialect: Any = csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS)
    except csv.Error:
        dialect = csv.excel

    reader = csv.reader(io.StringIO(text), dialect)
    try:
        headers = next(reader)
    except StopIteration:
        raise FormatError("CSV file is empty")
    except csv.Error as e:
        raise FormatError(f"CSV file could not be parsed: {e}")

    def rows() -> Iterator[list[Any]]:
        try:
            yield from reader
        except csv.Error as e:
            raise FormatError(f"CSV file could not be parsed: {e}")

    return headers, rows(), lambda: None


def _open_xlsx(content: bytes) -> _Table:
    """Open the first sheet of an XLSX workbook in read-only mode."""
    if not content.startswith(XLSX_MAGIC):
        raise FormatError("File is not a valid XLSX workbook")
    try:
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise FormatError(f"XLSX file could not be opened: {e}")

    ws = wb.worksheets[0] if wb.worksheets else None
    if ws is None:
        wb.close()
        raise FormatError("XLSX file has no worksheets")

    # Iterate rows lazily, never materialize the whole sheet
    row_iter = ws.iter_rows(values_only=True)
    try:
        raw_headers = next(row_iter)
    except StopIteration:
        wb.close()
        raise FormatError("XLSX file is empty")

    headers = [cell_to_text(h) for h in raw_headers]
    return headers, (list(r) for r in row_iter), wb.close


def _open_xls(content: bytes) -> _Table:
    """Open the first sheet of a legacy XLS workbook."""
    if not content.startswith(XLS_MAGIC):
        raise FormatError("File is not a valid XLS workbook")
    try:
        book = xlrd.open_workbook(file_contents=content, on_demand=True)
        sheet = book.sheet_by_index(0)
    except (xlrd.XLRDError, IndexError, ValueError) as e:
        raise FormatError(f"XLS file could not be opened: {e}")

    def value(cell: Any) -> Any:
        if cell.ctype == xlrd.XL_CELL_DATE:
            y, mo, d, h, mi, s = xlrd.xldate_as_tuple(cell.value, book.datemode)
            if (y, mo, d) == (0, 0, 0):
                return time(h, mi, s)
            return datetime(y, mo, d, h, mi, s)
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
            return None
        return cell.value

    if sheet.nrows == 0:
        book.release_resources()
        raise FormatError("XLS file is empty")

    headers = [cell_to_text(value(c)) for c in sheet.row(0)]
    rows = ([value(c) for c in sheet.row(i)] for i in range(1, sheet.nrows))
    return headers, rows, book.release_resources


_OPENERS: dict[str, Callable[[bytes], _Table]] = {
    "csv": _open_csv,
    "xlsx": _open_xlsx,
    "xls": _open_xls,
}


def _iter_raw_rows(
    headers: list[str],
    value_rows: Iterable[list[Any]],
    close: Callable[[], None],
    max_rows: int,
) -> Iterator[RawRow]:
    columns = [(pos, header.strip()) for pos, header in enumerate(headers) if header.strip()]
    count = 0
    try:
        for row_number, values in enumerate(value_rows, start=2):
            fields = {
                header: cell_to_text(values[pos]) if pos < len(values) else ""
                for pos, header in columns
            }
            if not any(fields.values()):
                continue
            if count >= max_rows:
                logger.warning("File has more than %d data rows, stopping at row %d", max_rows, row_number)
                break
            count += 1
            yield RawRow(index=row_number, fields=fields)
    finally:
        close()


def read_rows(filename: str | None, content: bytes, max_rows: int = MAX_ROWS) -> Iterator[RawRow]:
    """Decode an uploaded file into a lazy sequence of raw rows (first sheet only).

    The header row and the first data row are read eagerly so that an
    unusable file is rejected before any record is processed. Blank rows
    are skipped; missing cells become empty strings.

    Args:
        filename: Original file name, used to pick the decoder.
        content: Raw file bytes.
        max_rows: Maximum number of data rows to yield.

    Returns:
        Iterator of RawRow, numbered from 2 (row 1 is the header).

    Raises:
        FormatError: Unsupported extension, undecodable content, missing
            header row, or no data rows.
    """
    ext = get_file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise FormatError(f"Unsupported file type '.{ext}'. Allowed: CSV, XLSX, XLS")

    headers, value_rows, close = _OPENERS[ext](content)
    if not any(h.strip() for h in headers):
        close()
        raise FormatError("File has no header row")

    rows = _iter_raw_rows(headers, value_rows, close, max_rows)
    first = next(rows, None)
    if first is None:
        raise FormatError("File must contain a header row and at least one data row")

    return itertools.chain([first], rows)
