"""Tests for the import session state machine."""

import pytest

from opsboard.models import AccessLog
from opsboard.services.import_service import (
    CommitResult,
    FormatError,
    ImportOutcome,
    ImportPipeline,
    ImportState,
    InvalidStateError,
    ReferenceCatalog,
    ReferenceDataError,
    record_import_audit,
)
from tests.conftest import HEADERS, VALID_ROW, FakeIncidentStore, incident_row, make_csv


def _pipeline(catalog: ReferenceCatalog, store: FakeIncidentStore, **kwargs) -> ImportPipeline:
    async def loader() -> ReferenceCatalog:
        return catalog

    return ImportPipeline(store, catalog_loader=loader, **kwargs)


@pytest.mark.asyncio
async def test_full_session_walks_all_states(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    pipeline = _pipeline(catalog, fake_store)
    assert pipeline.state == ImportState.IDLE

    pipeline.select_file("incidents.csv", make_csv(HEADERS, [VALID_ROW, incident_row(27)]))
    assert pipeline.state == ImportState.FILE_SELECTED

    outcome = await pipeline.process()
    assert pipeline.state == ImportState.VALIDATED
    assert outcome.valid_count == 2

    states: list[ImportState] = []
    result = await pipeline.commit("Ana", on_progress=lambda _: states.append(pipeline.state))

    assert states == [ImportState.IMPORTING]
    assert pipeline.state == ImportState.COMPLETED
    assert result.success_count == 2
    assert pipeline.commit_result is result
    assert len(fake_store.inserted) == 2


@pytest.mark.asyncio
async def test_process_requires_selected_file(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    with pytest.raises(InvalidStateError):
        await _pipeline(catalog, fake_store).process()


@pytest.mark.asyncio
async def test_format_error_lands_in_validated(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    pipeline = _pipeline(catalog, fake_store)
    pipeline.select_file("incidents.csv", make_csv(HEADERS, []))

    with pytest.raises(FormatError):
        await pipeline.process()

    assert pipeline.state == ImportState.VALIDATED
    assert pipeline.outcome == ImportOutcome()
    assert pipeline.errors == ["File must contain a header row and at least one data row"]

    with pytest.raises(InvalidStateError, match="No valid records"):
        await pipeline.commit("import")


@pytest.mark.asyncio
async def test_reference_data_error_lands_in_validated(fake_store: FakeIncidentStore) -> None:
    async def broken_loader() -> ReferenceCatalog:
        raise ReferenceDataError("Could not load reference data")

    pipeline = ImportPipeline(fake_store, catalog_loader=broken_loader)
    pipeline.select_file("incidents.csv", make_csv(HEADERS, [VALID_ROW]))

    with pytest.raises(ReferenceDataError):
        await pipeline.process()

    assert pipeline.state == ImportState.VALIDATED
    assert pipeline.outcome.valid_count == 0


@pytest.mark.asyncio
async def test_commit_requires_valid_records(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    row = list(VALID_ROW)
    row[6] = "Inexistente"
    pipeline = _pipeline(catalog, fake_store)
    pipeline.select_file("incidents.csv", make_csv(HEADERS, [row]))
    outcome = await pipeline.process()

    assert outcome.invalid_count == 1
    with pytest.raises(InvalidStateError):
        await pipeline.commit("import")
    assert pipeline.state == ImportState.VALIDATED


@pytest.mark.asyncio
async def test_commit_before_validation_rejected(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    pipeline = _pipeline(catalog, fake_store)
    pipeline.select_file("incidents.csv", make_csv(HEADERS, [VALID_ROW]))
    with pytest.raises(InvalidStateError):
        await pipeline.commit("import")


@pytest.mark.asyncio
async def test_reimport_same_file_is_all_duplicates(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    content = make_csv(HEADERS, [incident_row(day) for day in range(1, 13)])

    first = _pipeline(catalog, fake_store)
    first.select_file("incidents.csv", content)
    await first.process()
    first_result = await first.commit("import")
    assert first_result.success_count == 12

    second = _pipeline(catalog, fake_store)
    second.select_file("incidents.csv", content)
    await second.process()
    second_result = await second.commit("import")

    assert second.outcome.valid_count == 0
    assert second.duplicate_count == 12
    assert second_result.success_count == 0
    assert second_result.total_batches == 0
    assert len(fake_store.inserted) == 12


@pytest.mark.asyncio
async def test_batch_size_is_configurable(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    pipeline = _pipeline(catalog, fake_store, batch_size=4)
    pipeline.select_file("incidents.csv", make_csv(HEADERS, [incident_row(day) for day in range(1, 10)]))
    await pipeline.process()
    result = await pipeline.commit("import")
    assert [b.size for b in result.batches] == [4, 4, 1]


@pytest.mark.asyncio
async def test_from_outcome_resumes_validated(catalog: ReferenceCatalog, fake_store: FakeIncidentStore) -> None:
    source = _pipeline(catalog, fake_store)
    source.select_file("incidents.csv", make_csv(HEADERS, [VALID_ROW]))
    outcome = await source.process()

    resumed = ImportPipeline.from_outcome(fake_store, outcome)
    assert resumed.state == ImportState.VALIDATED
    result = await resumed.commit("import")
    assert result.success_count == 1


@pytest.mark.asyncio
async def test_record_import_audit(init_test_db) -> None:
    await record_import_audit(CommitResult(success_count=8, error_count=2), "Ana")

    entries = await AccessLog.find_all().to_list()
    assert len(entries) == 1
    assert entries[0].user == "Ana"
    assert entries[0].action == "import_incidents"
    assert entries[0].details == "Incident import finished: 8 succeeded, 2 failed"


@pytest.mark.asyncio
async def test_no_audit_without_success(init_test_db) -> None:
    await record_import_audit(CommitResult(success_count=0, error_count=5), "Ana")
    assert await AccessLog.find_all().count() == 0
