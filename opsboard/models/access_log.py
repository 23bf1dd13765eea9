"""Audit trail of operator actions."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document
from pydantic import Field


class AccessLog(Document):
    """One audited operator action (e.g. a finished bulk import)."""

    user: Optional[str] = None
    action: str
    details: Optional[str] = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "access_logs"
        indexes = [
            "action",
            "occurred_at",
        ]
