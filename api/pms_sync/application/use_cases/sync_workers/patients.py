"""
Worker de pacientes.
"""
from typing import Sequence

from pms_sync.application.use_cases.sync_workers.base import EntitySyncWorker, SyncContext
from pms_sync.domain.entities.pms_records import PmsPatient
from pms_sync.domain.entities.sync_result import RecordOutcome
from pms_sync.infrastructure.database.models import PatientModel
from pms_sync.shared.constants.pms_constants import EntityType


class PatientSyncWorker(EntitySyncWorker[PmsPatient]):
    """
    Pacientes no dependen de otra entidad.

    dob solo se escribe al crear: una fecha distinta en el PMS no pisa la
    registrada internamente.
    """

    entity_type = EntityType.PATIENT
    model = PatientModel
    provenance_column = "pms_patient_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[PmsPatient]:
        return await self.adapter.fetch_patients(ctx.since)

    async def sync_record(self, ctx: SyncContext, record: PmsPatient) -> RecordOutcome:
        values = {
            "first_name": record.first_name,
            "last_name": record.last_name,
            "middle_name": record.middle_name,
            "email": record.email,
            "phone": record.phone,
            "mobile_phone": record.mobile_phone,
            "work_phone": record.work_phone,
            "address": record.address(),
            "gender": record.gender,
        }
        return await self.upsert_mapped(ctx, record.pms_id, values, create_only={"dob": record.dob})
