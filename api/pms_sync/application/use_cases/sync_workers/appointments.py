"""
Worker de citas.
"""
from typing import Sequence

from pms_sync.application.services.normalizers import check_appointment_transition
from pms_sync.application.use_cases.sync_workers.base import EntitySyncWorker, SyncContext
from pms_sync.domain.entities.pms_records import PmsAppointment
from pms_sync.domain.entities.sync_result import RecordOutcome
from pms_sync.infrastructure.database.models import AppointmentModel
from pms_sync.shared.constants.pms_constants import EntityType


class AppointmentSyncWorker(EntitySyncWorker[PmsAppointment]):
    """
    Citas. Requieren el paciente mapeado; el cambio de estado en una
    actualización se valida contra la tabla de transiciones.
    """

    entity_type = EntityType.APPOINTMENT
    model = AppointmentModel
    provenance_column = "pms_appointment_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[PmsAppointment]:
        return await self.adapter.fetch_appointments(ctx.since)

    async def sync_record(self, ctx: SyncContext, record: PmsAppointment) -> RecordOutcome:
        patient_id = await self.require_mapping(ctx, EntityType.PATIENT, record.patient_pms_id)

        existing = await self.load_mapped(ctx, record.pms_id)
        check_appointment_transition(existing.status if existing is not None else None, record.status)

        values = {
            "patient_id": patient_id,
            "provider": record.provider or "Unknown",
            "operatory": record.operatory,
            "start_time": record.start_time,
            "end_time": record.end_time,
            "status": record.status,
            "notes": record.notes,
        }
        return await self.upsert_mapped(ctx, record.pms_id, values)
