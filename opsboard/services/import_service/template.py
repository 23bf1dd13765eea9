"""Downloadable example file matching the expected import column layout."""

import csv
import io
from enum import Enum

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .constants import TEMPLATE_HEADERS, TEMPLATE_ROWS

TEMPLATE_BASENAME = "incident_import_template"


class TemplateFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


def build_template_csv() -> bytes:
    """Build the example file as CSV, every cell quoted."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL)
    writer.writerow(TEMPLATE_HEADERS)
    for row in TEMPLATE_ROWS:
        writer.writerow(row)
    # BOM so spreadsheet apps detect UTF-8 accents
    return output.getvalue().encode("utf-8-sig")


def build_template_xlsx() -> bytes:
    """Build the example file as an XLSX workbook with a styled header."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Incidents"

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
    header_alignment = Alignment(horizontal="center")

    for col_idx, header in enumerate(TEMPLATE_HEADERS, 1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment

    for row_idx, row in enumerate(TEMPLATE_ROWS, 2):
        for col_idx, value in enumerate(row, 1):
            # Plain text cells keep DD/MM/YYYY readable as typed
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.number_format = "@"

    for col_idx, header in enumerate(TEMPLATE_HEADERS, 1):
        max_length = max([len(header)] + [len(row[col_idx - 1]) for row in TEMPLATE_ROWS])
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 2, 50)

    ws.freeze_panes = "A2"

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def build_template(template_format: TemplateFormat) -> tuple[bytes, str, str]:
    """Return (content, media type, filename) for the requested format."""
    if template_format == TemplateFormat.XLSX:
        return (
            build_template_xlsx(),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            f"{TEMPLATE_BASENAME}.xlsx",
        )
    return build_template_csv(), "text/csv", f"{TEMPLATE_BASENAME}.csv"
