"""Reference catalog and the resolver that maps free text to reference ids."""

from collections.abc import Iterable
from types import MappingProxyType
from typing import NamedTuple

from .constants import (
    MSG_CRITICALITY_REQUIRED,
    MSG_ENVIRONMENT_REQUIRED,
    MSG_SEGMENT_REQUIRED,
    MSG_TYPE_REQUIRED,
)
from .records import ImportCandidate


class ReferenceEntry(NamedTuple):
    """One reference value. ``environment_id`` is set for segments only."""

    id: int
    name: str
    environment_id: int | None = None


def _key(name: str) -> str:
    return name.strip().casefold()


def _index(entries: Iterable[ReferenceEntry]) -> MappingProxyType:
    index: dict[str, int] = {}
    for entry in entries:
        # First entry wins on a repeated name
        index.setdefault(_key(entry.name), entry.id)
    return MappingProxyType(index)


class ReferenceCatalog:
    """Read-only snapshot of the controlled vocabulary for one import session.

    Lookups are exact and case-insensitive. Segment names are scoped to
    their owning environment.
    """

    __slots__ = ("_types", "_criticalities", "_environments", "_segments")

    def __init__(
        self,
        types: Iterable[ReferenceEntry] = (),
        criticalities: Iterable[ReferenceEntry] = (),
        environments: Iterable[ReferenceEntry] = (),
        segments: Iterable[ReferenceEntry] = (),
    ) -> None:
        self._types = _index(types)
        self._criticalities = _index(criticalities)
        self._environments = _index(environments)
        segment_index: dict[tuple[int | None, str], int] = {}
        for entry in segments:
            segment_index.setdefault((entry.environment_id, _key(entry.name)), entry.id)
        self._segments = MappingProxyType(segment_index)

    def resolve_type(self, name: str) -> int | None:
        return self._types.get(_key(name))

    def resolve_criticality(self, name: str) -> int | None:
        return self._criticalities.get(_key(name))

    def resolve_environment(self, name: str) -> int | None:
        return self._environments.get(_key(name))

    def resolve_segment(self, name: str, environment_id: int) -> int | None:
        return self._segments.get((environment_id, _key(name)))

    def __repr__(self) -> str:
        return (
            f"<ReferenceCatalog(types={len(self._types)}, criticalities={len(self._criticalities)}, "
            f"environments={len(self._environments)}, segments={len(self._segments)})>"
        )


def resolve_references(candidate: ImportCandidate, catalog: ReferenceCatalog) -> None:
    """Resolve type, criticality, environment and segment of a candidate.

    Sets the ``*_id`` fields that resolve and records one error per field
    that does not. A segment is only searched within the resolved
    environment; when the environment did not resolve, the segment is
    reported as unresolved on its own line.
    """
    if not candidate.type_name:
        candidate.add_error(MSG_TYPE_REQUIRED)
    else:
        candidate.type_id = catalog.resolve_type(candidate.type_name)
        if candidate.type_id is None:
            candidate.add_error(f'Incident type "{candidate.type_name}" not found')

    if not candidate.criticality_name:
        candidate.add_error(MSG_CRITICALITY_REQUIRED)
    else:
        candidate.criticality_id = catalog.resolve_criticality(candidate.criticality_name)
        if candidate.criticality_id is None:
            candidate.add_error(f'Criticality "{candidate.criticality_name}" not found')

    if not candidate.environment_name:
        candidate.add_error(MSG_ENVIRONMENT_REQUIRED)
    else:
        candidate.environment_id = catalog.resolve_environment(candidate.environment_name)
        if candidate.environment_id is None:
            candidate.add_error(f'Environment "{candidate.environment_name}" not found')

    if not candidate.segment_name:
        candidate.add_error(MSG_SEGMENT_REQUIRED)
    elif not candidate.environment_name:
        candidate.add_error(f'Segment "{candidate.segment_name}" cannot be resolved without an environment')
    else:
        if candidate.environment_id is not None:
            candidate.segment_id = catalog.resolve_segment(candidate.segment_name, candidate.environment_id)
        if candidate.segment_id is None:
            candidate.add_error(
                f'Segment "{candidate.segment_name}" not found in environment "{candidate.environment_name}"'
            )
