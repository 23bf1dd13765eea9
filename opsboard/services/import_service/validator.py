"""Record validator: per-row business rules, all errors collected in one pass."""

import logging
from collections.abc import Iterable

from .catalog import ReferenceCatalog, resolve_references
from .constants import (
    MSG_DESCRIPTION_REQUIRED,
    MSG_END_BEFORE_START,
    MSG_INVALID_END,
    MSG_INVALID_START,
    MSG_START_REQUIRED,
)
from .mapping import row_to_candidate
from .records import ImportCandidate, ImportOutcome, RawRow
from .temporal import duration_minutes, parse_datetime

logger = logging.getLogger(__name__)


def validate_candidate(candidate: ImportCandidate, catalog: ReferenceCatalog) -> ImportCandidate:
    """Parse, resolve and check one candidate in place.

    Never stops at the first problem: every violated rule adds its own
    message to ``candidate.errors``.
    """
    if not candidate.start_raw:
        candidate.add_error(MSG_START_REQUIRED)
    else:
        candidate.start_at = parse_datetime(candidate.start_raw)
        if candidate.start_at is None:
            candidate.add_error(MSG_INVALID_START)

    if candidate.end_raw:
        candidate.end_at = parse_datetime(candidate.end_raw)
        if candidate.end_at is None:
            candidate.add_error(MSG_INVALID_END)

    resolve_references(candidate, catalog)

    if not candidate.description:
        candidate.add_error(MSG_DESCRIPTION_REQUIRED)

    candidate.duration_minutes = None
    if candidate.start_at is not None and candidate.end_at is not None:
        if candidate.end_at < candidate.start_at:
            candidate.add_error(MSG_END_BEFORE_START)
        else:
            candidate.duration_minutes = duration_minutes(candidate.start_at, candidate.end_at)

    return candidate


def validate_rows(rows: Iterable[RawRow], catalog: ReferenceCatalog) -> ImportOutcome:
    """Normalize and validate every row, partitioning them into valid and invalid.

    Raises:
        FormatError: If the underlying reader fails mid-file.
    """
    candidates = [validate_candidate(row_to_candidate(row), catalog) for row in rows]
    outcome = ImportOutcome.from_candidates(candidates)
    logger.info(
        "Validated %d rows: %d valid, %d invalid",
        outcome.total_processed,
        outcome.valid_count,
        outcome.invalid_count,
    )
    return outcome
