"""MongoDB document models for Opsboard."""

from opsboard.models.access_log import AccessLog
from opsboard.models.import_session import ImportSession, ImportState
from opsboard.models.incident import Incident
from opsboard.models.reference import Criticality, Environment, IncidentType, Segment

__all__ = [
    # Main documents
    "Incident",
    "AccessLog",
    # Reference data documents
    "IncidentType",
    "Criticality",
    "Environment",
    "Segment",
    # Import
    "ImportSession",
    "ImportState",
]
