"""Pydantic schemas for the Opsboard API."""

from opsboard.schemas.import_schemas import (
    CommitRequest,
    CommitResponse,
    ImportSessionSummary,
    ImportValidationResponse,
)

__all__ = [
    "CommitRequest",
    "CommitResponse",
    "ImportSessionSummary",
    "ImportValidationResponse",
]
