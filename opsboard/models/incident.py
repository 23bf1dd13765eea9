"""Incident document model."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, IndexModel


class Incident(Document):
    """An infrastructure incident.

    Consumed by the reliability metrics (MTTR/MTBF/availability) and the
    reporting screens. ``end_at`` is None while an incident is still open.
    """

    start_at: datetime
    end_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    type_id: int
    criticality_id: int
    environment_id: int
    segment_id: int

    description: str
    actions_taken: Optional[str] = None

    created_by: str
    updated_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "incidents"
        indexes = [
            # Backs the import duplicate check
            IndexModel([("start_at", ASCENDING), ("environment_id", ASCENDING)]),
            "type_id",
            "criticality_id",
        ]

    def __repr__(self) -> str:
        return (
            f"<Incident(id={self.id}, start_at={self.start_at}, "
            f"environment_id={self.environment_id})>"
        )
