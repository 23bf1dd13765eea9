"""Pytest configuration and fixtures for Opsboard tests with an in-process MongoDB."""

import io
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import pytest
import pytest_asyncio
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from openpyxl import Workbook

from opsboard.cli.seed_reference import seed_reference_data
from opsboard.database import get_document_models
from opsboard.services.import_service import (
    IncidentStore,
    ReferenceCatalog,
    ReferenceEntry,
    StorageError,
)

REFERENCE_DATA: dict[str, Any] = {
    "incident_types": [
        {"ref_id": 1, "name": "Falha de Sistema"},
        {"ref_id": 2, "name": "Manutenção"},
    ],
    "criticalities": [
        {"ref_id": 1, "name": "Baixo", "color": "#22c55e", "weight": 1},
        {"ref_id": 3, "name": "Alto", "color": "#f97316", "weight": 3, "is_downtime": True},
    ],
    "environments": [
        {
            "ref_id": 1,
            "name": "Produção",
            "segments": [
                {"ref_id": 1, "name": "Web Server"},
                {"ref_id": 2, "name": "Database"},
            ],
        },
        {
            "ref_id": 3,
            "name": "Desenvolvimento",
            "segments": [
                {"ref_id": 6, "name": "Database"},
            ],
        },
    ],
}

HEADERS = [
    "Data início",
    "Hora de início",
    "Data Fim",
    "Hora de fim",
    "Natureza",
    "Criticidade",
    "Ambiente",
    "Segmento",
    "Problema",
    "Solução",
]

VALID_ROW = [
    "26/03/2025", "12:30", "26/03/2025", "13:45", "Falha de Sistema", "Alto",
    "Produção", "Web Server", "Servidor web não responde", "Reinicialização do serviço",
]


def make_csv(headers: list[str], rows: list[list[str]], delimiter: str = ",", encoding: str = "utf-8") -> bytes:
    """Build CSV bytes from headers and rows."""
    lines = [delimiter.join(headers)] + [delimiter.join(row) for row in rows]
    return ("\n".join(lines) + "\n").encode(encoding)


def make_xlsx(headers: list[str], rows: list[list[Any]]) -> bytes:
    """Build XLSX bytes from headers and rows."""
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def incident_row(day: int, hour: int = 12, environment: str = "Produção", segment: str = "Web Server") -> list[str]:
    """A valid row starting on 2025-03-``day`` at ``hour``:00, lasting 30 minutes."""
    date = f"{day:02d}/03/2025"
    return [
        date, f"{hour:02d}:00", date, f"{hour:02d}:30", "Falha de Sistema", "Alto",
        environment, segment, f"Incident {day}-{hour}", "",
    ]


class FakeIncidentStore(IncidentStore):
    """In-memory IncidentStore double.

    ``existing`` holds (start_at, environment_id) keys already persisted;
    ``fail_lookups_for`` and ``fail_batches`` inject failures.
    """

    def __init__(
        self,
        existing: set[tuple[datetime, int]] | None = None,
        fail_lookups_for: set[int] | None = None,
        fail_batches: set[int] | None = None,
    ) -> None:
        self.existing = set(existing or ())
        self.fail_lookups_for = fail_lookups_for or set()
        self.fail_batches = fail_batches or set()
        self.inserted: list[dict[str, Any]] = []
        self.batch_calls = 0
        self.lookups = 0

    async def find_duplicate(self, start_at: datetime, environment_id: int) -> bool:
        self.lookups += 1
        if environment_id in self.fail_lookups_for:
            raise StorageError("connection reset")
        return (start_at, environment_id) in self.existing

    async def insert_batch(self, records: list[dict[str, Any]]) -> None:
        self.batch_calls += 1
        if self.batch_calls in self.fail_batches:
            raise StorageError(f"write failed on batch {self.batch_calls}")
        self.inserted.extend(records)
        for record in records:
            self.existing.add((record["start_at"], record["environment_id"]))


@pytest.fixture
def catalog() -> ReferenceCatalog:
    """Reference catalog matching REFERENCE_DATA, without a database."""
    return ReferenceCatalog(
        types=[ReferenceEntry(t["ref_id"], t["name"]) for t in REFERENCE_DATA["incident_types"]],
        criticalities=[ReferenceEntry(c["ref_id"], c["name"]) for c in REFERENCE_DATA["criticalities"]],
        environments=[ReferenceEntry(e["ref_id"], e["name"]) for e in REFERENCE_DATA["environments"]],
        segments=[
            ReferenceEntry(s["ref_id"], s["name"], e["ref_id"])
            for e in REFERENCE_DATA["environments"]
            for s in e["segments"]
        ],
    )


@pytest.fixture
def fake_store() -> FakeIncidentStore:
    return FakeIncidentStore()


@pytest_asyncio.fixture(scope="function")
async def init_test_db():
    """Initialize Beanie with a unique in-process test database."""
    mongo_client = AsyncMongoMockClient()
    db = mongo_client[f"test_opsboard_{uuid.uuid4().hex[:8]}"]

    await init_beanie(
        database=db,
        document_models=get_document_models(),
    )
    yield db


@pytest_asyncio.fixture(scope="function")
async def seeded_db(init_test_db):
    """Test database with REFERENCE_DATA loaded."""
    await seed_reference_data(REFERENCE_DATA)
    yield init_test_db


# Create a test-specific app to avoid lifespan conflicts
def create_test_app():
    """Create a FastAPI app configured for testing (no database lifespan)."""
    from fastapi import FastAPI

    from opsboard import __version__
    from opsboard.main import app as main_app

    # Empty lifespan for testing - we manage the database ourselves
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(
        title="Opsboard Test",
        version=__version__,
        lifespan=test_lifespan,
    )

    # Copy all routes from the main app
    for route in main_app.routes:
        test_app.routes.append(route)

    return test_app


@pytest.fixture
def test_app():
    return create_test_app()


@pytest.fixture
def main_app():
    """The application whose dependency_overrides apply to the copied routes."""
    from opsboard.main import app

    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(seeded_db, test_app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client over the seeded test database."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
