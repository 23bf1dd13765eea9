"""Persistence port used by the duplicate detector and the batch committer."""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pymongo.errors import PyMongoError

from opsboard.models import Criticality, Environment, Incident, IncidentType, Segment

from .catalog import ReferenceCatalog, ReferenceEntry
from .errors import ReferenceDataError, StorageError

logger = logging.getLogger(__name__)


class IncidentStore(ABC):
    """Abstract access to persisted incidents."""

    @abstractmethod
    async def find_duplicate(self, start_at: datetime, environment_id: int) -> bool:
        """Return True if an incident with this start and environment exists.

        Raises:
            StorageError: If the lookup fails.
        """

    @abstractmethod
    async def insert_batch(self, records: list[dict[str, Any]]) -> None:
        """Insert all records as one write.

        Raises:
            StorageError: If the write fails.
        """


class BeanieIncidentStore(IncidentStore):
    """IncidentStore backed by the Incident collection."""

    async def find_duplicate(self, start_at: datetime, environment_id: int) -> bool:
        try:
            existing = await Incident.find_one(
                Incident.start_at == start_at,
                Incident.environment_id == environment_id,
            )
        except PyMongoError as e:
            raise StorageError(str(e)) from e
        return existing is not None

    async def insert_batch(self, records: list[dict[str, Any]]) -> None:
        if not records:
            return
        try:
            await Incident.insert_many([Incident(**record) for record in records])
        except PyMongoError as e:
            raise StorageError(str(e)) from e


async def load_reference_catalog() -> ReferenceCatalog:
    """Fetch the four reference collections and build a fresh catalog.

    Raises:
        ReferenceDataError: If any collection cannot be read.
    """
    try:
        types, criticalities, environments, segments = await asyncio.gather(
            IncidentType.find_all().to_list(),
            Criticality.find_all().to_list(),
            Environment.find_all().to_list(),
            Segment.find_all().to_list(),
        )
    except PyMongoError as e:
        logger.error("Failed to load reference data: %s", e)
        raise ReferenceDataError("Could not load reference data") from e

    catalog = ReferenceCatalog(
        types=[ReferenceEntry(t.ref_id, t.name) for t in types],
        criticalities=[ReferenceEntry(c.ref_id, c.name) for c in criticalities],
        environments=[ReferenceEntry(e.ref_id, e.name) for e in environments],
        segments=[ReferenceEntry(s.ref_id, s.name, s.environment_id) for s in segments],
    )
    logger.debug("Loaded %r", catalog)
    return catalog
