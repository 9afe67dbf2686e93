"""
Tests unitarios para PmsSyncUseCases (orquestador).

Usan SQLite y el adapter en memoria; el barrido programado se prueba con
full_sync mockeado.
"""
from unittest.mock import AsyncMock, patch

import pytest

from pms_sync.application.use_cases.pms_sync_use_cases import PmsSyncUseCases
from pms_sync.domain.entities.pms_records import PmsPatient, PmsProcedureCode
from pms_sync.domain.entities.sync_result import SyncResult
from pms_sync.infrastructure.database.models import PatientModel
from pms_sync.infrastructure.repositories.mapping_repository import MappingRepository
from pms_sync.shared.constants.pms_constants import FULL_SYNC_ORDER, SyncStatus
from pms_sync.shared.exceptions.domain import EntityAlreadyExistsException, EntityNotFoundException
from pms_sync.shared.exceptions.sync import PmsNotConfiguredException


@pytest.fixture
def use_cases(fake_adapter, session_factory, test_settings) -> PmsSyncUseCases:
    return PmsSyncUseCases(fake_adapter, session_factory=session_factory, config=test_settings)


async def _add_patient(factory, tenant_id: str, patient_id: str = "p-1") -> str:
    async with factory() as db:
        db.add(PatientModel(id=patient_id, tenant_id=tenant_id, first_name="Ana", last_name="Lopez"))
        await db.commit()
    return patient_id


class TestFullSync:

    async def test_runs_every_stage_in_dependency_order(self, use_cases, fake_adapter, tenant_id):
        fake_adapter.patients = [PmsPatient(pms_id="1", first_name="Ana", last_name="Lopez")]

        results = await use_cases.full_sync(tenant_id)

        assert list(results) == [et.value for et in FULL_SYNC_ORDER]
        assert all(r.status == SyncStatus.COMPLETED for r in results.values())
        assert results["patient"].created == 1
        assert list(fake_adapter.calls)[:4] == ["procedure_codes", "providers", "operatories", "patients"]

    async def test_failed_stage_aborts_the_rest(self, use_cases, fake_adapter, session_factory, tenant_id):
        fake_adapter.procedure_codes = [PmsProcedureCode(code="D0120", code_num="12")]
        fake_adapter.fail_on = "patients"

        results = await use_cases.full_sync(tenant_id)

        assert results["procedure_code"].status == SyncStatus.COMPLETED
        assert results["patient"].status == SyncStatus.FAILED
        assert "patients no disponible" in results["patient"].error
        for entity in ("family", "appointment", "insurance_policy", "procedure"):
            assert results[entity].status == SyncStatus.NOT_RUN
        assert "appointments" not in fake_adapter.calls

        # Lo confirmado por etapas previas se conserva
        async with session_factory() as db:
            mapping = await MappingRepository(db, "open_dental").find(tenant_id, "procedure_code", "12")
        assert mapping is not None


class TestTriggerSync:

    @pytest.mark.parametrize("alias, fetched", [
        ("cdt_code", "procedure_codes"),
        (" Insurance ", "insurance_subscriptions"),
        ("families", None),
        ("completed_procedure", "procedures"),
    ])
    async def test_aliases_resolve_to_worker(self, use_cases, fake_adapter, tenant_id, alias, fetched):
        result = await use_cases.trigger_sync(tenant_id, alias)

        assert isinstance(result, SyncResult)
        if fetched:
            assert fetched in fake_adapter.calls

    async def test_unknown_entity_returns_message(self, use_cases, tenant_id):
        result = await use_cases.trigger_sync(tenant_id, "invoices")
        assert result == {"message": "Sync not implemented for invoices"}

    async def test_errors_propagate(self, use_cases, fake_adapter, tenant_id):
        fake_adapter.fail_on = "providers"
        with pytest.raises(RuntimeError):
            await use_cases.trigger_sync(tenant_id, "provider")


class TestScheduledSync:

    async def test_noop_when_not_configured(self, use_cases, fake_adapter, tenant_id):
        fake_adapter.configured = False

        with patch.object(use_cases, "full_sync", new_callable=AsyncMock) as mock_full:
            summary = await use_cases.scheduled_sync()

        assert summary == {"tenants": 0, "failed": []}
        mock_full.assert_not_called()

    async def test_failing_tenant_does_not_stop_others(self, use_cases, make_tenant):
        await make_tenant("t-a")
        await make_tenant("t-b")
        await make_tenant("t-off", status="suspended")

        async def _full_sync(tenant_id):
            if tenant_id == "t-b":
                raise RuntimeError("PMS caído")
            return {}

        with patch.object(use_cases, "full_sync", new=AsyncMock(side_effect=_full_sync)) as mock_full:
            summary = await use_cases.scheduled_sync()

        assert summary == {"tenants": 2, "failed": ["t-b"]}
        called = sorted(call.args[0] for call in mock_full.await_args_list)
        assert called == ["t-a", "t-b"]


class TestIntrospection:

    async def test_status_and_config_reflect_watermarks(self, use_cases, fake_adapter, tenant_id):
        fake_adapter.patients = [PmsPatient(pms_id="1", first_name="Ana", last_name="Lopez")]
        await use_cases.trigger_sync(tenant_id, "patient")

        status = await use_cases.get_sync_status(tenant_id)
        assert status["patient"] is not None
        assert status["appointment"] is None

        entities = {item.entity_type: item for item in await use_cases.get_sync_status_list(tenant_id)}
        assert entities["patient"].status == "synced"
        assert entities["patient"].record_count == 1
        assert entities["family"].status == "never"

        config = await use_cases.get_sync_config(tenant_id)
        assert config.pms_source == "open_dental"
        assert config.configured is True
        assert config.auto_sync is False
        assert config.last_full_sync == status["patient"]

    async def test_get_mappings_clamps_limit_and_offset(self, use_cases, fake_adapter, tenant_id):
        fake_adapter.patients = [PmsPatient(pms_id=str(i), first_name="A", last_name="B") for i in range(5)]
        await use_cases.trigger_sync(tenant_id, "patient")

        default_page = await use_cases.get_mappings(tenant_id)
        assert default_page.limit == 2
        assert default_page.total == 5
        assert len(default_page.items) == 2

        capped = await use_cases.get_mappings(tenant_id, limit=1000, offset=-4)
        assert capped.limit == 3
        assert capped.offset == 0
        assert len(capped.items) == 3
        assert capped.items[0].entity_type == "patient"


class TestPushPatient:

    async def test_push_creates_mapping_and_provenance(self, use_cases, fake_adapter, session_factory, tenant_id):
        patient_id = await _add_patient(session_factory, tenant_id)

        pms_id = await use_cases.push_patient_to_pms(tenant_id, patient_id)

        assert pms_id == "9001"
        assert fake_adapter.pushed[0].last_name == "Lopez"
        async with session_factory() as db:
            patient = await db.get(PatientModel, patient_id)
            mapping = await MappingRepository(db, "open_dental").find(tenant_id, "patient", "9001")
        assert patient.pms_patient_id == "9001"
        assert patient.pms_source == "open_dental"
        assert mapping.internal_id == patient_id

    async def test_second_push_conflicts(self, use_cases, session_factory, tenant_id):
        patient_id = await _add_patient(session_factory, tenant_id)
        await use_cases.push_patient_to_pms(tenant_id, patient_id)

        with pytest.raises(EntityAlreadyExistsException) as exc_info:
            await use_cases.push_patient_to_pms(tenant_id, patient_id)
        assert exc_info.value.status_code == 409

    async def test_unknown_patient_is_not_found_even_without_credentials(self, use_cases, fake_adapter, tenant_id):
        fake_adapter.configured = False
        with pytest.raises(EntityNotFoundException):
            await use_cases.push_patient_to_pms(tenant_id, "no-existe")

    async def test_patient_from_other_tenant_is_not_found(self, use_cases, session_factory, make_tenant, tenant_id):
        await make_tenant("t-2")
        patient_id = await _add_patient(session_factory, "t-2")
        with pytest.raises(EntityNotFoundException):
            await use_cases.push_patient_to_pms(tenant_id, patient_id)

    async def test_unconfigured_pms_is_service_unavailable(self, use_cases, fake_adapter, session_factory, tenant_id):
        fake_adapter.configured = False
        patient_id = await _add_patient(session_factory, tenant_id)

        with pytest.raises(PmsNotConfiguredException) as exc_info:
            await use_cases.push_patient_to_pms(tenant_id, patient_id)

        assert exc_info.value.status_code == 503
        assert fake_adapter.pushed == []
