"""
Workers de datos de referencia: códigos de procedimiento, proveedores y
operatorios. No dependen de otras entidades.
"""
from typing import Sequence

from pms_sync.application.services.normalizers import (
    infer_procedure_category,
    infer_provider_specialty,
    parse_procedure_duration,
)
from pms_sync.application.use_cases.sync_workers.base import EntitySyncWorker, SyncContext
from pms_sync.domain.entities.pms_records import PmsOperatory, PmsProcedureCode, PmsProvider
from pms_sync.domain.entities.sync_result import RecordOutcome
from pms_sync.infrastructure.database.models import OperatoryModel, ProcedureCodeModel, ProviderModel
from pms_sync.shared.constants.pms_constants import EntityType


class ProcedureCodeSyncWorker(EntitySyncWorker[PmsProcedureCode]):
    entity_type = EntityType.PROCEDURE_CODE
    model = ProcedureCodeModel
    provenance_column = "pms_code_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[PmsProcedureCode]:
        return await self.adapter.fetch_procedure_codes(ctx.since)

    def accepts(self, record: PmsProcedureCode) -> bool:
        return bool(record.code)

    async def sync_record(self, ctx: SyncContext, record: PmsProcedureCode) -> RecordOutcome:
        values = {
            "code": record.code,
            "category": infer_procedure_category(record.category),
            "description": record.description,
            "abbreviation": record.abbreviation,
            "default_fee": record.default_fee or 0.0,
            "typical_duration": parse_procedure_duration(record.proc_time),
            "is_active": True,
        }
        return await self.upsert_mapped(ctx, record.pms_id, values)


class ProviderSyncWorker(EntitySyncWorker[PmsProvider]):
    entity_type = EntityType.PROVIDER
    model = ProviderModel
    provenance_column = "pms_provider_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[PmsProvider]:
        return await self.adapter.fetch_providers(ctx.since)

    async def sync_record(self, ctx: SyncContext, record: PmsProvider) -> RecordOutcome:
        values = {
            "first_name": record.first_name,
            "last_name": record.last_name,
            "npi": record.npi,
            "license": record.state_license,
            "specialty": infer_provider_specialty(record.specialty),
            "is_active": not record.is_hidden,
        }
        return await self.upsert_mapped(ctx, record.pms_id, values)


class OperatorySyncWorker(EntitySyncWorker[PmsOperatory]):
    entity_type = EntityType.OPERATORY
    model = OperatoryModel
    provenance_column = "pms_operatory_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[PmsOperatory]:
        return await self.adapter.fetch_operatories(ctx.since)

    async def sync_record(self, ctx: SyncContext, record: PmsOperatory) -> RecordOutcome:
        values = {
            "name": record.name,
            "short_name": record.abbrev,
            "is_active": not record.is_hidden,
            "is_hygiene": record.is_hygiene,
        }
        return await self.upsert_mapped(ctx, record.pms_id, values)
