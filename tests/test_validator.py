"""Unit tests for reference resolution and record validation."""

from datetime import datetime

import pytest

from opsboard.services.import_service import (
    ImportCandidate,
    RawRow,
    ReferenceCatalog,
    ReferenceEntry,
    resolve_references,
    row_to_candidate,
    validate_candidate,
    validate_rows,
)
from opsboard.services.import_service.constants import (
    MSG_CRITICALITY_REQUIRED,
    MSG_DESCRIPTION_REQUIRED,
    MSG_END_BEFORE_START,
    MSG_ENVIRONMENT_REQUIRED,
    MSG_INVALID_END,
    MSG_INVALID_START,
    MSG_SEGMENT_REQUIRED,
    MSG_START_REQUIRED,
    MSG_TYPE_REQUIRED,
)
from tests.conftest import HEADERS, VALID_ROW


def _candidate(row: list[str], index: int = 2) -> ImportCandidate:
    return row_to_candidate(RawRow(index=index, fields=dict(zip(HEADERS, row))))


def _with(**overrides: str) -> list[str]:
    """VALID_ROW with some columns replaced, keyed by header position name."""
    positions = {
        "start_date": 0, "start_time": 1, "end_date": 2, "end_time": 3, "type": 4,
        "criticality": 5, "environment": 6, "segment": 7, "description": 8, "actions": 9,
    }
    row = list(VALID_ROW)
    for key, value in overrides.items():
        row[positions[key]] = value
    return row


# =============================================================================
# Reference catalog
# =============================================================================


class TestReferenceCatalog:
    def test_lookup_is_case_insensitive(self, catalog: ReferenceCatalog) -> None:
        assert catalog.resolve_type("falha de sistema") == 1
        assert catalog.resolve_criticality("ALTO") == 3
        assert catalog.resolve_environment(" produção ") == 1

    def test_lookup_is_exact(self, catalog: ReferenceCatalog) -> None:
        assert catalog.resolve_environment("Producao") is None
        assert catalog.resolve_type("Falha") is None

    def test_segments_are_scoped_to_environment(self, catalog: ReferenceCatalog) -> None:
        assert catalog.resolve_segment("Database", 1) == 2
        assert catalog.resolve_segment("Database", 3) == 6
        assert catalog.resolve_segment("Web Server", 3) is None

    def test_first_entry_wins_on_repeated_name(self) -> None:
        catalog = ReferenceCatalog(types=[ReferenceEntry(5, "Outage"), ReferenceEntry(9, "outage")])
        assert catalog.resolve_type("OUTAGE") == 5

    def test_repr(self, catalog: ReferenceCatalog) -> None:
        assert repr(catalog) == (
            "<ReferenceCatalog(types=2, criticalities=2, environments=2, segments=3)>"
        )


class TestResolveReferences:
    def test_all_resolved(self, catalog: ReferenceCatalog) -> None:
        candidate = _candidate(VALID_ROW)
        resolve_references(candidate, catalog)
        assert candidate.errors == []
        assert (candidate.type_id, candidate.criticality_id) == (1, 3)
        assert (candidate.environment_id, candidate.segment_id) == (1, 1)

    def test_unknown_environment_reports_segment_separately(self, catalog: ReferenceCatalog) -> None:
        candidate = _candidate(_with(environment="Inexistente"))
        resolve_references(candidate, catalog)
        assert candidate.environment_id is None
        assert candidate.segment_id is None
        assert candidate.errors == [
            'Environment "Inexistente" not found',
            'Segment "Web Server" not found in environment "Inexistente"',
        ]

    def test_segment_of_another_environment(self, catalog: ReferenceCatalog) -> None:
        candidate = _candidate(_with(environment="Desenvolvimento"))
        resolve_references(candidate, catalog)
        assert candidate.environment_id == 3
        assert candidate.errors == ['Segment "Web Server" not found in environment "Desenvolvimento"']

    def test_segment_without_environment(self, catalog: ReferenceCatalog) -> None:
        candidate = _candidate(_with(environment=""))
        resolve_references(candidate, catalog)
        assert candidate.errors == [
            MSG_ENVIRONMENT_REQUIRED,
            'Segment "Web Server" cannot be resolved without an environment',
        ]

    def test_unknown_type_and_criticality(self, catalog: ReferenceCatalog) -> None:
        candidate = _candidate(_with(type="Desconhecido", criticality="Gravíssimo"))
        resolve_references(candidate, catalog)
        assert 'Incident type "Desconhecido" not found' in candidate.errors
        assert 'Criticality "Gravíssimo" not found' in candidate.errors
        assert candidate.environment_id == 1
        assert candidate.segment_id == 1


# =============================================================================
# Record validator
# =============================================================================


class TestValidateCandidate:
    def test_valid_row_duration(self, catalog: ReferenceCatalog) -> None:
        """A fully specified row resolves to a valid candidate of 75 minutes."""
        candidate = validate_candidate(_candidate(_with(actions="")), catalog)
        assert candidate.is_valid
        assert candidate.errors == []
        assert candidate.start_at == datetime(2025, 3, 26, 12, 30)
        assert candidate.end_at == datetime(2025, 3, 26, 13, 45)
        assert candidate.duration_minutes == 75
        assert candidate.actions_taken is None
        assert None not in (
            candidate.type_id,
            candidate.criticality_id,
            candidate.environment_id,
            candidate.segment_id,
        )

    def test_no_end_date_is_valid(self, catalog: ReferenceCatalog) -> None:
        candidate = validate_candidate(_candidate(_with(end_date="", end_time="")), catalog)
        assert candidate.is_valid
        assert candidate.end_at is None
        assert candidate.duration_minutes is None

    def test_end_before_start(self, catalog: ReferenceCatalog) -> None:
        candidate = validate_candidate(_candidate(_with(end_date="26/03/2025", end_time="11:00")), catalog)
        assert not candidate.is_valid
        assert candidate.errors == [MSG_END_BEFORE_START]
        assert candidate.duration_minutes is None

    def test_end_equal_to_start(self, catalog: ReferenceCatalog) -> None:
        candidate = validate_candidate(_candidate(_with(end_time="12:30")), catalog)
        assert candidate.is_valid
        assert candidate.duration_minutes == 0

    def test_missing_start(self, catalog: ReferenceCatalog) -> None:
        candidate = validate_candidate(_candidate(_with(start_date="", start_time="")), catalog)
        assert candidate.errors == [MSG_START_REQUIRED]
        assert candidate.duration_minutes is None

    def test_invalid_start_and_end(self, catalog: ReferenceCatalog) -> None:
        candidate = validate_candidate(
            _candidate(_with(start_date="32/03/2025", end_date="amanhã", end_time="")), catalog
        )
        assert candidate.errors == [MSG_INVALID_START, MSG_INVALID_END]

    def test_unknown_environment_is_not_valid(self, catalog: ReferenceCatalog) -> None:
        candidate = validate_candidate(_candidate(_with(environment="Inexistente")), catalog)
        assert not candidate.is_valid
        assert 'Environment "Inexistente" not found' in candidate.errors
        assert candidate.duration_minutes == 75

    def test_all_errors_collected_once_each(self, catalog: ReferenceCatalog) -> None:
        """An empty row reports every violated rule exactly once."""
        candidate = validate_candidate(_candidate([""] * len(HEADERS)), catalog)
        assert candidate.errors == [
            MSG_START_REQUIRED,
            MSG_TYPE_REQUIRED,
            MSG_CRITICALITY_REQUIRED,
            MSG_ENVIRONMENT_REQUIRED,
            MSG_SEGMENT_REQUIRED,
            MSG_DESCRIPTION_REQUIRED,
        ]
        assert len(candidate.errors) == len(set(candidate.errors))

    def test_revalidation_does_not_repeat_errors(self, catalog: ReferenceCatalog) -> None:
        candidate = _candidate(_with(description=""))
        validate_candidate(candidate, catalog)
        validate_candidate(candidate, catalog)
        assert candidate.errors == [MSG_DESCRIPTION_REQUIRED]


def test_validate_rows_partitions_in_row_order(catalog: ReferenceCatalog) -> None:
    rows = [
        RawRow(index=2, fields=dict(zip(HEADERS, VALID_ROW))),
        RawRow(index=3, fields=dict(zip(HEADERS, _with(environment="Inexistente")))),
        RawRow(index=5, fields=dict(zip(HEADERS, _with(start_time="14:00", end_time="14:10")))),
        RawRow(index=6, fields=dict(zip(HEADERS, _with(description="")))),
    ]
    outcome = validate_rows(rows, catalog)

    assert [c.source_row_index for c in outcome.valid] == [2, 5]
    assert [c.source_row_index for c in outcome.invalid] == [3, 6]
    assert outcome.summary.model_dump() == {"valid": 2, "invalid": 2, "total_processed": 4}
    assert all(c.errors for c in outcome.invalid)


@pytest.mark.parametrize("created_by", ["import", "Ana Souza"])
def test_to_incident_fields(catalog: ReferenceCatalog, created_by: str) -> None:
    candidate = validate_candidate(_candidate(VALID_ROW), catalog)
    fields = candidate.to_incident_fields(created_by)
    assert fields == {
        "start_at": datetime(2025, 3, 26, 12, 30),
        "end_at": datetime(2025, 3, 26, 13, 45),
        "duration_minutes": 75,
        "type_id": 1,
        "criticality_id": 3,
        "environment_id": 1,
        "segment_id": 1,
        "description": "Servidor web não responde",
        "actions_taken": "Reinicialização do serviço",
        "created_by": created_by,
    }
