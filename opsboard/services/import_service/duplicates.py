"""Duplicate detector: flag records already persisted with the same start and environment."""

import asyncio
import logging

from .constants import DEFAULT_DUPLICATE_CHECK_CONCURRENCY, MSG_DUPLICATE, MSG_DUPLICATE_CHECK_FAILED
from .records import ImportCandidate, ImportOutcome
from .storage import IncidentStore

logger = logging.getLogger(__name__)


async def _is_duplicate(
    candidate: ImportCandidate,
    store: IncidentStore,
    semaphore: asyncio.Semaphore,
) -> bool:
    async with semaphore:
        try:
            return await store.find_duplicate(candidate.start_at, candidate.environment_id)
        except Exception as e:
            cause = str(e) or type(e).__name__
            logger.warning(
                "Duplicate check failed for row %d, keeping record: %s",
                candidate.source_row_index,
                cause,
            )
            candidate.add_warning(MSG_DUPLICATE_CHECK_FAILED.format(cause=cause))
            return False


async def detect_duplicates(
    outcome: ImportOutcome,
    store: IncidentStore,
    concurrency: int = DEFAULT_DUPLICATE_CHECK_CONCURRENCY,
) -> ImportOutcome:
    """Check every valid record against persisted incidents.

    Lookups run in parallel, at most ``concurrency`` at a time. A record
    whose lookup fails stays valid and carries a warning. The key is
    ``(start_at, environment_id)`` only, so two incidents starting at the
    same instant in different segments of one environment collide.

    Args:
        outcome: Validation outcome; left untouched.
        store: Persistence port.
        concurrency: Maximum parallel lookups.

    Returns:
        A new outcome with duplicates moved to ``invalid``. Both parts
        stay in source row order.
    """
    candidates = [c.model_copy(deep=True) for c in outcome.valid]
    semaphore = asyncio.Semaphore(max(1, concurrency))
    flags = await asyncio.gather(*(_is_duplicate(c, store, semaphore) for c in candidates))

    valid: list[ImportCandidate] = []
    duplicates: list[ImportCandidate] = []
    for candidate, is_duplicate in zip(candidates, flags):
        if is_duplicate:
            candidate.add_error(MSG_DUPLICATE)
            duplicates.append(candidate)
        else:
            valid.append(candidate)

    if duplicates:
        logger.info("Flagged %d duplicate records", len(duplicates))

    invalid = sorted([*outcome.invalid, *duplicates], key=lambda c: c.source_row_index)
    return ImportOutcome(valid=valid, invalid=invalid)
