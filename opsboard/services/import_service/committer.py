"""Batch committer: write valid records in fixed-size batches, isolating failures."""

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from .constants import DEFAULT_BATCH_SIZE
from .records import BatchOutcome, CommitResult, ImportCandidate
from .storage import IncidentStore

logger = logging.getLogger(__name__)

# Either may be a plain function or a coroutine function
ProgressCallback = Callable[[float], None | Awaitable[None]]
CancelCheck = Callable[[], bool | Awaitable[bool]]


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _report_progress(on_progress: ProgressCallback | None, progress: float) -> None:
    if on_progress is None:
        return
    try:
        await _call(on_progress, progress)
    except Exception as e:
        logger.warning("Progress report failed at %.1f%%: %s", progress, e)


async def _cancel_requested(should_cancel: CancelCheck | None) -> bool:
    if should_cancel is None:
        return False
    try:
        return bool(await _call(should_cancel))
    except Exception as e:
        logger.warning("Cancel check failed, continuing: %s", e)
        return False


def partition(records: Sequence[ImportCandidate], batch_size: int) -> list[list[ImportCandidate]]:
    """Split records into consecutive batches of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(records[i:i + batch_size]) for i in range(0, len(records), batch_size)]


async def commit_batches(
    records: Sequence[ImportCandidate],
    store: IncidentStore,
    created_by: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_progress: ProgressCallback | None = None,
    should_cancel: CancelCheck | None = None,
) -> CommitResult:
    """Persist records batch by batch.

    Each batch is one write. A failed batch counts all of its records as
    failed and records its cause once; later batches are still attempted.
    Batches run strictly in order and progress is reported after each one,
    so it only ever increases. Failed batches are not retried. A callback
    that raises is logged and treated as a no-op (no cancel).

    Args:
        records: Valid, non-duplicate candidates in source row order.
        store: Persistence port.
        created_by: Author stamped on every incident.
        batch_size: Records per batch.
        on_progress: Called after each batch with the cumulative percentage
            of records attempted.
        should_cancel: Polled before each batch; True stops the loop.

    Returns:
        The CommitResult accumulated up to the last completed batch.
    """
    batches = partition(records, batch_size)
    result = CommitResult(total_batches=len(batches))
    if not batches:
        result.progress = 100.0
        await _report_progress(on_progress, result.progress)
        return result

    for number, batch in enumerate(batches, start=1):
        if await _cancel_requested(should_cancel):
            logger.info("Import cancelled before batch %d of %d", number, len(batches))
            result.cancelled = True
            break

        try:
            await store.insert_batch([record.to_incident_fields(created_by) for record in batch])
        except Exception as e:
            cause = str(e) or type(e).__name__
            logger.error("Batch %d of %d failed (%d records): %s", number, len(batches), len(batch), cause)
            result.error_count += len(batch)
            result.error_details.append(f"Batch {number}: {cause}")
            result.batches.append(BatchOutcome(number=number, size=len(batch), succeeded=False, error=cause))
        else:
            result.success_count += len(batch)
            result.batches.append(BatchOutcome(number=number, size=len(batch), succeeded=True))

        # Weighted by records; equals completed/total batches except when the
        # last batch is short, which then counts for less
        result.progress = (result.success_count + result.error_count) / len(records) * 100
        await _report_progress(on_progress, result.progress)

    return result
