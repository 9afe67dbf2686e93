"""
Tests unitarios para los endpoints de sincronización PMS.

Verifican el contrato HTTP con el caso de uso mockeado vía
dependency_overrides:
- X-Tenant-ID obligatorio.
- full-sync responde 202 y corre en background (o 200 con wait=true).
- Las AppException se traducen a su status (409, 503, ...).
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from pms_sync.api.v1.dependencies.use_case_deps import get_pms_sync_use_cases
from pms_sync.application.dto.sync_dto import MappingDTO, MappingPageDTO, SyncConfigDTO
from pms_sync.domain.entities.sync_result import SyncResult
from pms_sync.shared.exceptions.domain import EntityAlreadyExistsException
from pms_sync.shared.exceptions.sync import PmsNotConfiguredException, SyncLeaseUnavailableException

HEADERS = {"X-Tenant-ID": "tenant-1"}


@pytest.fixture
def mock_use_cases() -> MagicMock:
    uc = MagicMock()
    uc.is_configured = MagicMock(return_value=True)
    uc.trigger_sync = AsyncMock(return_value=SyncResult(created=2, updated=1))
    uc.full_sync = AsyncMock(return_value={"patient": SyncResult(created=1)})
    uc.get_sync_status = AsyncMock(return_value={"patient": None})
    uc.get_sync_config = AsyncMock(return_value=SyncConfigDTO(
        pms_source="open_dental",
        configured=True,
        auto_sync=True,
        sync_interval_minutes=10,
    ))
    uc.get_mappings = AsyncMock(return_value=MappingPageDTO(
        items=[MappingDTO(
            id=1,
            entity_type="patient",
            pms_id="15",
            local_id="abc",
            synced_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            sync_status="synced",
        )],
        total=1,
        limit=100,
        offset=0,
    ))
    uc.push_patient_to_pms = AsyncMock(return_value="321")
    return uc


@pytest.fixture
def app_with_mock(mock_use_cases: MagicMock):
    """Crea la app FastAPI con el use case mockeado vía dependency_overrides."""
    from main import create_application
    app = create_application()
    app.dependency_overrides[get_pms_sync_use_cases] = lambda: mock_use_cases
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app_with_mock):
    transport = ASGITransport(app=app_with_mock)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_missing_tenant_header_is_rejected(client) -> None:
    response = await client.get("/api/v1/pms-sync/status")
    assert response.status_code == 422


async def test_blank_tenant_header_is_validation_error(client) -> None:
    response = await client.get("/api/v1/pms-sync/status", headers={"X-Tenant-ID": "  "})
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_status_passes_tenant(client, mock_use_cases) -> None:
    response = await client.get("/api/v1/pms-sync/status", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"patient": None}
    mock_use_cases.get_sync_status.assert_awaited_once_with("tenant-1")


async def test_configured_and_config(client) -> None:
    configured = await client.get("/api/v1/pms-sync/configured")
    config = await client.get("/api/v1/pms-sync/config", headers=HEADERS)

    assert configured.json() == {"configured": True}
    assert config.json()["sync_interval_minutes"] == 10


async def test_trigger_accepts_camel_case_alias(client, mock_use_cases) -> None:
    response = await client.post("/api/v1/pms-sync/trigger", json={"entityType": "patient"}, headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["created"] == 2
    assert data["status"] == "completed"
    mock_use_cases.trigger_sync.assert_awaited_once_with("tenant-1", "patient")


async def test_trigger_unknown_entity_returns_message(client, mock_use_cases) -> None:
    mock_use_cases.trigger_sync.return_value = {"message": "Sync not implemented for invoices"}

    response = await client.post("/api/v1/pms-sync/trigger", json={"entity_type": "invoices"}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"message": "Sync not implemented for invoices"}


async def test_trigger_while_running_is_conflict(client, mock_use_cases) -> None:
    mock_use_cases.trigger_sync.side_effect = SyncLeaseUnavailableException("tenant-1", "patient")

    response = await client.post("/api/v1/pms-sync/trigger", json={"entity_type": "patient"}, headers=HEADERS)

    assert response.status_code == 409
    assert response.json()["error"] == "SYNC_IN_PROGRESS"


async def test_full_sync_runs_in_background(client, mock_use_cases) -> None:
    response = await client.post("/api/v1/pms-sync/full-sync", headers=HEADERS)

    assert response.status_code == 202
    assert response.json()["status"] == "processing"

    # Deja correr la tarea en background
    await asyncio.sleep(0.05)
    mock_use_cases.full_sync.assert_awaited_once_with("tenant-1")


async def test_full_sync_wait_returns_results(client) -> None:
    response = await client.post("/api/v1/pms-sync/full-sync?wait=true", headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["tenant_id"] == "tenant-1"
    assert data["results"]["patient"]["created"] == 1


async def test_mappings_validates_query(client, mock_use_cases) -> None:
    ok = await client.get("/api/v1/pms-sync/mappings?limit=50&offset=10", headers=HEADERS)
    bad = await client.get("/api/v1/pms-sync/mappings?limit=0", headers=HEADERS)

    assert ok.status_code == 200
    assert ok.json()["items"][0]["local_id"] == "abc"
    mock_use_cases.get_mappings.assert_awaited_once_with("tenant-1", limit=50, offset=10)
    assert bad.status_code == 422


async def test_push_patient(client) -> None:
    response = await client.post("/api/v1/pms-sync/patients/abc/push", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"success": True, "patient_id": "abc", "pms_id": "321"}


@pytest.mark.parametrize("error, status_code", [
    (EntityAlreadyExistsException("PmsMapping", "patient_id", "abc"), 409),
    (PmsNotConfiguredException("open_dental"), 503),
])
async def test_push_patient_errors(client, mock_use_cases, error, status_code) -> None:
    mock_use_cases.push_patient_to_pms.side_effect = error

    response = await client.post("/api/v1/pms-sync/patients/abc/push", headers=HEADERS)

    assert response.status_code == status_code
