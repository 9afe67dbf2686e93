"""
Worker de procedimientos completados (entrada de facturación).
"""
from typing import Optional, Sequence

from pms_sync.application.use_cases.sync_workers.base import EntitySyncWorker, SyncContext
from pms_sync.domain.entities.pms_records import PmsProcedure
from pms_sync.domain.entities.sync_result import RecordOutcome
from pms_sync.infrastructure.database.models import (
    CompletedProcedureModel,
    ProcedureCodeModel,
    ProviderModel,
)
from pms_sync.shared.constants.pms_constants import EntityType, PROCEDURE_STATUS_COMPLETED
from pms_sync.shared.utils.datetime_utils import utc_now


class ProcedureSyncWorker(EntitySyncWorker[PmsProcedure]):
    """
    Solo entran procedimientos con estado completed; el resto se descarta
    antes de cualquier efecto y no se cuenta.
    """

    entity_type = EntityType.PROCEDURE
    model = CompletedProcedureModel
    provenance_column = "pms_procedure_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[PmsProcedure]:
        return await self.adapter.fetch_procedures(ctx.since)

    def accepts(self, record: PmsProcedure) -> bool:
        return record.proc_status == PROCEDURE_STATUS_COMPLETED

    async def _resolve_cdt_code(self, ctx: SyncContext, record: PmsProcedure) -> str:
        code_id = await ctx.mappings.find_internal_id(
            ctx.tenant_id, EntityType.PROCEDURE_CODE.value, record.code_num
        )
        if code_id is not None:
            code = await ctx.db.get(ProcedureCodeModel, code_id)
            if code is not None:
                return code.code
        return record.proc_code or record.code_num

    async def _resolve_provider_name(self, ctx: SyncContext, record: PmsProcedure) -> Optional[str]:
        provider_id = await ctx.mappings.find_internal_id(
            ctx.tenant_id, EntityType.PROVIDER.value, record.provider_pms_id
        )
        if provider_id is None:
            return None
        provider = await ctx.db.get(ProviderModel, provider_id)
        if provider is None:
            return None
        return f"{provider.first_name} {provider.last_name}".strip() or None

    async def sync_record(self, ctx: SyncContext, record: PmsProcedure) -> RecordOutcome:
        patient_id = await self.require_mapping(ctx, EntityType.PATIENT, record.patient_pms_id)
        appointment_id = await ctx.mappings.find_internal_id(
            ctx.tenant_id, EntityType.APPOINTMENT.value, record.appointment_pms_id
        )

        values = {
            "patient_id": patient_id,
            "appointment_id": appointment_id,
            "cdt_code": await self._resolve_cdt_code(ctx, record),
            "description": record.description,
            "proc_date": record.proc_date,
            "tooth_number": record.tooth_number,
            "surface": record.surface,
            "fee": record.fee,
            "status": record.proc_status,
            "provider_name": await self._resolve_provider_name(ctx, record),
            "note": record.note,
            "diag_code": record.diag_code,
            "date_complete": record.date_complete,
            "last_synced_at": utc_now(),
        }
        return await self.upsert_mapped(ctx, record.pms_id, values)
