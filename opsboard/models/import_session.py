"""ImportSession document model for tracking bulk incident imports."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from beanie import Document
from pydantic import Field


class ImportState(str, Enum):
    """Lifecycle of one import session."""

    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    PROCESSING = "processing"
    VALIDATED = "validated"
    IMPORTING = "importing"
    COMPLETED = "completed"


class ImportSession(Document):
    """Tracks one uploaded file through validation and batch commit."""

    filename: str
    file_type: str  # "csv", "xlsx" or "xls"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    state: ImportState = ImportState.IDLE

    # File-level problems (unreadable file, reference data unavailable)
    errors: list[str] = Field(default_factory=list)

    # Serialized candidates, in source row order
    valid_records: list[dict[str, Any]] = Field(default_factory=list)
    invalid_records: list[dict[str, Any]] = Field(default_factory=list)
    total_processed: int = 0

    # Commit results
    created_by: Optional[str] = None
    duplicates: int = 0
    success_count: int = 0
    error_count: int = 0
    error_details: list[str] = Field(default_factory=list)
    total_batches: int = 0
    progress: float = 0.0
    cancel_requested: bool = False
    cancelled: bool = False
    completed_at: Optional[datetime] = None

    class Settings:
        name = "import_sessions"
        indexes = [
            "created_at",
        ]
