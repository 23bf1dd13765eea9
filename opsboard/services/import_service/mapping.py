"""Column normalizer: map spreadsheet headers onto canonical candidate fields."""

import re
import unicodedata

from .constants import HEADER_ALIASES
from .records import ImportCandidate, RawRow

_WHITESPACE = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    """Reduce a header to its alias-table key.

    Lowercases, strips accents, treats underscores as spaces and collapses
    runs of whitespace, so "Data  Início", "data_inicio" and "DATA INICIO"
    all map to "data inicio".
    """
    decomposed = unicodedata.normalize("NFKD", header)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = stripped.replace("_", " ").lower()
    return _WHITESPACE.sub(" ", stripped).strip()


def suggest_column_mapping(headers: list[str]) -> dict[str, str]:
    """Map each recognized header to its canonical field.

    Unrecognized headers are left out of the result.
    """
    mapping: dict[str, str] = {}
    for header in headers:
        field = HEADER_ALIASES.get(normalize_header(header))
        if field:
            mapping[header] = field
    return mapping


def _join_date_time(date_part: str, time_part: str, combined: str) -> str | None:
    """Build the raw date-time text of one event boundary.

    A date column and a time column are joined with a single space; a
    date alone means midnight; a combined column is used when there is
    no date column value.
    """
    if date_part and time_part:
        return f"{date_part} {time_part}"
    if date_part:
        return date_part
    if combined:
        return combined
    return None


def row_to_candidate(row: RawRow) -> ImportCandidate:
    """Convert one raw row into a partially populated candidate.

    Values are stripped; the first non-empty value wins when several
    headers map to the same field.
    """
    values: dict[str, str] = {}
    for header, raw_value in row.fields.items():
        field = HEADER_ALIASES.get(normalize_header(header))
        if field is None:
            continue
        value = (raw_value or "").strip()
        if value and not values.get(field):
            values[field] = value

    return ImportCandidate(
        source_row_index=row.index,
        start_raw=_join_date_time(
            values.get("start_date", ""), values.get("start_time", ""), values.get("start_datetime", "")
        ),
        end_raw=_join_date_time(
            values.get("end_date", ""), values.get("end_time", ""), values.get("end_datetime", "")
        ),
        type_name=values.get("type_name", ""),
        criticality_name=values.get("criticality_name", ""),
        environment_name=values.get("environment_name", ""),
        segment_name=values.get("segment_name", ""),
        description=values.get("description", ""),
        actions_taken=values.get("actions_taken") or None,
    )
