"""Import session orchestration: reader -> validator -> duplicates -> batches."""

import logging
from collections.abc import Awaitable, Callable

from pymongo.errors import PyMongoError

from opsboard.models import AccessLog, ImportState

from .catalog import ReferenceCatalog
from .committer import CancelCheck, ProgressCallback, commit_batches
from .constants import (
    AUDIT_ACTION_IMPORT,
    DEFAULT_BATCH_SIZE,
    DEFAULT_DUPLICATE_CHECK_CONCURRENCY,
    MAX_ROWS,
)
from .duplicates import detect_duplicates
from .errors import FormatError, InvalidStateError, ReferenceDataError
from .parsers import read_rows
from .records import CommitResult, ImportOutcome
from .storage import IncidentStore, load_reference_catalog
from .validator import validate_rows

logger = logging.getLogger(__name__)

CatalogLoader = Callable[[], Awaitable[ReferenceCatalog]]


class ImportPipeline:
    """Runs one import session through its states.

    ``Idle -> FileSelected -> Processing -> Validated -> Importing -> Completed``.
    A failure while processing lands in ``Validated`` with no valid
    records, so the invalid rows and the file error can still be shown.
    The reference catalog is loaded fresh for every processed file.
    """

    def __init__(
        self,
        store: IncidentStore,
        catalog_loader: CatalogLoader = load_reference_catalog,
        batch_size: int = DEFAULT_BATCH_SIZE,
        duplicate_check_concurrency: int = DEFAULT_DUPLICATE_CHECK_CONCURRENCY,
        max_rows: int = MAX_ROWS,
    ) -> None:
        self.store = store
        self.catalog_loader = catalog_loader
        self.batch_size = batch_size
        self.duplicate_check_concurrency = duplicate_check_concurrency
        self.max_rows = max_rows

        self.state = ImportState.IDLE
        self.filename: str | None = None
        self.outcome: ImportOutcome | None = None
        self.commit_result: CommitResult | None = None
        self.duplicate_count = 0
        self.errors: list[str] = []
        self._content: bytes | None = None

    @classmethod
    def from_outcome(cls, store: IncidentStore, outcome: ImportOutcome, **kwargs) -> "ImportPipeline":
        """Resume a session whose file was already validated."""
        pipeline = cls(store, **kwargs)
        pipeline.outcome = outcome
        pipeline.state = ImportState.VALIDATED
        return pipeline

    def select_file(self, filename: str, content: bytes) -> None:
        """Attach a file to the session, discarding any previous results."""
        if self.state in (ImportState.PROCESSING, ImportState.IMPORTING):
            raise InvalidStateError(f"Cannot select a file while {self.state.value}")
        self.filename = filename
        self._content = content
        self.outcome = None
        self.commit_result = None
        self.duplicate_count = 0
        self.errors = []
        self.state = ImportState.FILE_SELECTED

    async def process(self) -> ImportOutcome:
        """Read, normalize and validate the selected file.

        Returns:
            The valid/invalid partition of the file's rows.

        Raises:
            InvalidStateError: If no file is selected.
            FormatError: If the file is unusable (session is left Validated, empty).
            ReferenceDataError: If the catalog cannot be loaded (same).
        """
        if self.state != ImportState.FILE_SELECTED or self._content is None:
            raise InvalidStateError("Select a file before processing")

        self.state = ImportState.PROCESSING
        try:
            catalog = await self.catalog_loader()
            rows = read_rows(self.filename, self._content, max_rows=self.max_rows)
            self.outcome = validate_rows(rows, catalog)
        except (FormatError, ReferenceDataError) as e:
            logger.warning("Import of %s rejected: %s", self.filename, e)
            self.errors.append(str(e))
            self.outcome = ImportOutcome()
            raise
        finally:
            self._content = None
            if self.outcome is None:
                self.outcome = ImportOutcome()
            self.state = ImportState.VALIDATED

        return self.outcome

    async def commit(
        self,
        created_by: str,
        on_progress: ProgressCallback | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> CommitResult:
        """Drop duplicates and persist the remaining valid records in batches.

        Raises:
            InvalidStateError: Unless Validated with at least one valid record.
        """
        if self.state != ImportState.VALIDATED or self.outcome is None:
            raise InvalidStateError("The file must be validated before importing")
        if self.outcome.valid_count == 0:
            raise InvalidStateError("No valid records to import")

        self.state = ImportState.IMPORTING
        try:
            checked = await detect_duplicates(
                self.outcome, self.store, concurrency=self.duplicate_check_concurrency
            )
            self.duplicate_count = checked.invalid_count - self.outcome.invalid_count
            self.outcome = checked

            self.commit_result = await commit_batches(
                checked.valid,
                self.store,
                created_by=created_by,
                batch_size=self.batch_size,
                on_progress=on_progress,
                should_cancel=should_cancel,
            )
        finally:
            self.state = ImportState.COMPLETED

        logger.info(
            "Import of %s finished: %d committed, %d failed, %d duplicates%s",
            self.filename or "file",
            self.commit_result.success_count,
            self.commit_result.error_count,
            self.duplicate_count,
            " (cancelled)" if self.commit_result.cancelled else "",
        )
        return self.commit_result


async def record_import_audit(result: CommitResult, user: str | None) -> None:
    """Write an access-log entry for an import that committed at least one record."""
    if result.success_count == 0:
        return
    try:
        await AccessLog(
            user=user,
            action=AUDIT_ACTION_IMPORT,
            details=(
                f"Incident import finished: {result.success_count} succeeded, "
                f"{result.error_count} failed"
            ),
        ).insert()
    except PyMongoError as e:
        logger.warning("Could not write import audit entry: %s", e)
