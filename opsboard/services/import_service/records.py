"""Working records passed between the import pipeline stages."""

from datetime import datetime
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RawRow(NamedTuple):
    """One data row as read from the file.

    ``index`` is the 1-based spreadsheet row number (the header is row 1),
    used only in diagnostics.
    """

    index: int
    fields: dict[str, str]


class ImportCandidate(BaseModel):
    """One row's incident record as it moves through the pipeline."""

    source_row_index: int

    # Raw text, concatenated by the column normalizer
    start_raw: str | None = None
    end_raw: str | None = None
    type_name: str = ""
    criticality_name: str = ""
    environment_name: str = ""
    segment_name: str = ""
    description: str = ""
    actions_taken: str | None = None

    # Parsed / resolved values
    start_at: datetime | None = None
    end_at: datetime | None = None
    duration_minutes: int | None = None
    type_id: int | None = None
    criticality_id: int | None = None
    environment_id: int | None = None
    segment_id: int | None = None

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        """A candidate is valid exactly when no error has been recorded."""
        return not self.errors

    def add_error(self, message: str) -> None:
        """Record a validation failure, ignoring an identical repeat."""
        if message not in self.errors:
            self.errors.append(message)

    def add_warning(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    def to_incident_fields(self, created_by: str) -> dict:
        """Build the persisted incident fields of a fully resolved candidate."""
        return {
            "start_at": self.start_at,
            "end_at": self.end_at,
            "duration_minutes": self.duration_minutes,
            "type_id": self.type_id,
            "criticality_id": self.criticality_id,
            "environment_id": self.environment_id,
            "segment_id": self.segment_id,
            "description": self.description,
            "actions_taken": self.actions_taken,
            "created_by": created_by,
        }


class ImportSummary(BaseModel):
    valid: int
    invalid: int
    total_processed: int


class ImportOutcome(BaseModel):
    """Partition of one file's candidates into valid and invalid records.

    Never mutated once built; duplicate detection produces a new outcome.
    """

    model_config = ConfigDict(frozen=True)

    valid: list[ImportCandidate] = Field(default_factory=list)
    invalid: list[ImportCandidate] = Field(default_factory=list)

    @classmethod
    def from_candidates(cls, candidates: list[ImportCandidate]) -> "ImportOutcome":
        """Split candidates by validity, keeping source row order in each part."""
        return cls(
            valid=[c for c in candidates if c.is_valid],
            invalid=[c for c in candidates if not c.is_valid],
        )

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)

    @property
    def total_processed(self) -> int:
        return len(self.valid) + len(self.invalid)

    @property
    def summary(self) -> ImportSummary:
        return ImportSummary(
            valid=self.valid_count,
            invalid=self.invalid_count,
            total_processed=self.total_processed,
        )


class BatchOutcome(BaseModel):
    """Result of committing one batch."""

    number: int
    size: int
    succeeded: bool
    error: str | None = None


class CommitResult(BaseModel):
    """Accumulated result of the batch commit loop."""

    success_count: int = 0
    error_count: int = 0
    error_details: list[str] = Field(default_factory=list)
    batches: list[BatchOutcome] = Field(default_factory=list)
    total_batches: int = 0
    progress: float = 0.0
    cancelled: bool = False

    @property
    def completed_batches(self) -> int:
        return len(self.batches)
