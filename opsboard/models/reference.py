"""Reference data document models: the controlled vocabulary for incidents."""

from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class IncidentType(Document):
    """Incident type (nature of the incident, e.g. "System Failure")."""

    ref_id: Indexed(int, unique=True)
    name: str
    description: Optional[str] = None

    class Settings:
        name = "incident_types"

    def __repr__(self) -> str:
        return f"<IncidentType(ref_id={self.ref_id}, name={self.name})>"


class Criticality(Document):
    """Criticality level.

    ``is_downtime`` marks levels whose incidents count toward
    availability-impacting outage time.
    """

    ref_id: Indexed(int, unique=True)
    name: str
    color: str = "#808080"
    weight: int = 0
    is_downtime: bool = False
    description: Optional[str] = None

    class Settings:
        name = "criticalities"

    def __repr__(self) -> str:
        return f"<Criticality(ref_id={self.ref_id}, name={self.name})>"


class Environment(Document):
    """Environment an incident happened in (e.g. Production)."""

    ref_id: Indexed(int, unique=True)
    name: str
    description: Optional[str] = None

    class Settings:
        name = "environments"

    def __repr__(self) -> str:
        return f"<Environment(ref_id={self.ref_id}, name={self.name})>"


class Segment(Document):
    """Segment of an environment. Names are only unique within their environment."""

    ref_id: Indexed(int, unique=True)
    name: str
    environment_id: Indexed(int) = Field(..., description="Owning environment ref_id")
    description: Optional[str] = None

    class Settings:
        name = "segments"

    def __repr__(self) -> str:
        return (
            f"<Segment(ref_id={self.ref_id}, name={self.name}, "
            f"environment_id={self.environment_id})>"
        )
