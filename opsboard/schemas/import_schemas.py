"""Pydantic schemas for the bulk incident import API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ImportSummaryResponse(BaseModel):
    valid: int
    invalid: int
    total_processed: int


class ImportValidationResponse(BaseModel):
    """Pre-commit report after uploading a file."""

    session_id: str
    filename: str
    state: str
    valid_records: list[dict[str, Any]]
    invalid_records: list[dict[str, Any]]
    summary: ImportSummaryResponse
    errors: list[str] = Field(default_factory=list)


class CommitRequest(BaseModel):
    """Options for committing a validated session."""

    created_by: str | None = Field(None, max_length=200, description="Operator name stamped on incidents")
    batch_size: int | None = Field(None, ge=1, le=1000, description="Records per batch")


class CommitResponse(BaseModel):
    """Final report after the batch loop."""

    session_id: str
    state: str
    success_count: int
    error_count: int
    error_details: list[str]
    duplicates: int
    total_batches: int
    progress: float
    cancelled: bool
    invalid_records: list[dict[str, Any]]


class ImportSessionSummary(BaseModel):
    """Summary of an import session for listing and progress polling."""

    id: str
    filename: str
    created_at: datetime
    state: str
    valid: int
    invalid: int
    total_processed: int
    duplicates: int
    success_count: int
    error_count: int
    progress: float
    cancelled: bool
