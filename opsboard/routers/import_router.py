"""Import endpoints for bulk incident spreadsheet import."""

import logging
from datetime import datetime, timezone
from typing import Any

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from pydantic import ValidationError

from opsboard.config import settings
from opsboard.models import ImportSession, ImportState
from opsboard.schemas.import_schemas import (
    CommitRequest,
    CommitResponse,
    ImportSessionSummary,
    ImportSummaryResponse,
    ImportValidationResponse,
)
from opsboard.services.import_service import (
    ALLOWED_EXTENSIONS,
    BeanieIncidentStore,
    FormatError,
    ImportCandidate,
    ImportOutcome,
    ImportPipeline,
    IncidentStore,
    ReferenceDataError,
    TemplateFormat,
    build_template,
    get_file_extension,
    record_import_audit,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_incident_store() -> IncidentStore:
    """Persistence port used by commits; overridden in tests."""
    return BeanieIncidentStore()


def _serialize(candidates: list[ImportCandidate]) -> list[dict[str, Any]]:
    return [c.model_dump(mode="json") for c in candidates]


def _restore(records: list[dict[str, Any]]) -> list[ImportCandidate]:
    return [ImportCandidate.model_validate(r) for r in records]


def _summary(session: ImportSession) -> ImportSessionSummary:
    return ImportSessionSummary(
        id=str(session.id),
        filename=session.filename,
        created_at=session.created_at,
        state=session.state.value,
        valid=len(session.valid_records),
        invalid=len(session.invalid_records),
        total_processed=session.total_processed,
        duplicates=session.duplicates,
        success_count=session.success_count,
        error_count=session.error_count,
        progress=session.progress,
        cancelled=session.cancelled,
    )


@router.get("/template")
async def download_template(
    format: TemplateFormat = Query(TemplateFormat.CSV, description="csv or xlsx"),
) -> Response:
    """Download an example file with the expected column layout."""
    content, media_type, filename = build_template(format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/upload", response_model=ImportValidationResponse)
async def upload_incident_file(
    file: UploadFile = File(..., description="CSV, XLSX or XLS spreadsheet"),
) -> ImportValidationResponse:
    """Upload a spreadsheet and validate every row.

    Nothing is persisted besides the session: the response lists valid
    records and invalid records with their errors, for review before commit.
    """
    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '.{ext}'. Allowed: CSV, XLSX, XLS",
        )

    # Read in chunks to avoid unbounded memory for oversized files
    max_size = settings.max_upload_size_bytes
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(64 * 1024)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File exceeds maximum size of {max_size // (1024 * 1024)} MB",
            )
        chunks.append(chunk)
    content = b"".join(chunks)

    pipeline = ImportPipeline(
        get_incident_store(),
        batch_size=settings.import_batch_size,
        duplicate_check_concurrency=settings.duplicate_check_concurrency,
        max_rows=settings.import_max_rows,
    )
    pipeline.select_file(file.filename or "upload", content)

    try:
        outcome = await pipeline.process()
    except FormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ReferenceDataError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    session = ImportSession(
        filename=file.filename or "upload",
        file_type=ext,
        state=pipeline.state,
        errors=pipeline.errors,
        valid_records=_serialize(outcome.valid),
        invalid_records=_serialize(outcome.invalid),
        total_processed=outcome.total_processed,
    )
    await session.insert()

    return ImportValidationResponse(
        session_id=str(session.id),
        filename=session.filename,
        state=session.state.value,
        valid_records=session.valid_records,
        invalid_records=session.invalid_records,
        summary=ImportSummaryResponse(**outcome.summary.model_dump()),
        errors=session.errors,
    )


@router.post("/{session_id}/commit", response_model=CommitResponse)
async def commit_session(
    session_id: str,
    request: CommitRequest | None = None,
    store: IncidentStore = Depends(get_incident_store),
) -> CommitResponse:
    """Drop duplicates and commit the session's valid records in batches."""
    session = await _get_session(session_id)

    if session.state != ImportState.VALIDATED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Session is in '{session.state.value}' state, cannot import",
        )
    if not session.valid_records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid records to import",
        )

    opts = request or CommitRequest()
    created_by = opts.created_by or settings.default_created_by
    outcome = ImportOutcome(
        valid=_restore(session.valid_records),
        invalid=_restore(session.invalid_records),
    )
    pipeline = ImportPipeline.from_outcome(
        store,
        outcome,
        batch_size=opts.batch_size or settings.import_batch_size,
        duplicate_check_concurrency=settings.duplicate_check_concurrency,
    )
    pipeline.filename = session.filename

    # Claim the session atomically so concurrent commits cannot both run
    claim = await ImportSession.find_one(
        ImportSession.id == session.id,
        ImportSession.state == ImportState.VALIDATED,
    ).update({"$set": {"state": ImportState.IMPORTING.value, "created_by": created_by}})
    if claim is None or claim.modified_count == 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Session is already being imported",
        )
    session.state = ImportState.IMPORTING
    session.created_by = created_by

    async def on_progress(progress: float) -> None:
        await session.set({ImportSession.progress: progress})

    async def should_cancel() -> bool:
        current = await ImportSession.get(session.id)
        return bool(current and current.cancel_requested)

    try:
        result = await pipeline.commit(created_by, on_progress=on_progress, should_cancel=should_cancel)
    except Exception as e:
        cause = str(e) or type(e).__name__
        logger.exception("Import of session %s failed", session.id)
        # Back to validated so the operator can retry; duplicates are skipped
        session.state = ImportState.VALIDATED
        session.progress = 0.0
        session.cancel_requested = False
        session.errors.append(f"Import failed: {cause}")
        await session.save()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Import failed: {cause}",
        )
    final = pipeline.outcome or outcome

    session.state = pipeline.state
    session.valid_records = _serialize(final.valid)
    session.invalid_records = _serialize(final.invalid)
    session.duplicates = pipeline.duplicate_count
    session.success_count = result.success_count
    session.error_count = result.error_count
    session.error_details = result.error_details
    session.total_batches = result.total_batches
    session.progress = result.progress
    session.cancelled = result.cancelled
    session.cancel_requested = session.cancel_requested or result.cancelled
    session.completed_at = datetime.now(timezone.utc)
    await session.save()

    await record_import_audit(result, created_by)

    return CommitResponse(
        session_id=str(session.id),
        state=session.state.value,
        success_count=result.success_count,
        error_count=result.error_count,
        error_details=result.error_details,
        duplicates=session.duplicates,
        total_batches=result.total_batches,
        progress=result.progress,
        cancelled=result.cancelled,
        invalid_records=session.invalid_records,
    )


@router.post("/{session_id}/cancel", response_model=ImportSessionSummary)
async def cancel_session(session_id: str) -> ImportSessionSummary:
    """Ask a running import to stop before its next batch."""
    session = await _get_session(session_id)
    if session.state != ImportState.IMPORTING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Session is in '{session.state.value}' state, nothing to cancel",
        )
    await session.set({ImportSession.cancel_requested: True})
    return _summary(session)


@router.get("/sessions", response_model=list[ImportSessionSummary])
async def list_sessions() -> list[ImportSessionSummary]:
    """List import sessions, newest first."""
    sessions = await ImportSession.find_all().sort(-ImportSession.created_at).to_list()
    return [_summary(s) for s in sessions]


@router.get("/sessions/{session_id}", response_model=ImportSessionSummary)
async def get_session(session_id: str) -> ImportSessionSummary:
    """Get an import session; poll it for progress while importing."""
    session = await _get_session(session_id)
    return _summary(session)


async def _get_session(session_id: str) -> ImportSession:
    """Get an import session by ID.

    Raises:
        HTTPException: If the session does not exist.
    """
    try:
        session = await ImportSession.get(PydanticObjectId(session_id))
    except (InvalidId, ValidationError):
        session = None

    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import session '{session_id}' not found",
        )

    return session
