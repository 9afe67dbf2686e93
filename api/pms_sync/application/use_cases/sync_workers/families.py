"""
Worker de familias (derivado de los pacientes ya mapeados).
"""
from typing import Sequence

from loguru import logger
from sqlalchemy import update

from pms_sync.application.use_cases.sync_workers.base import EntitySyncWorker, SyncContext
from pms_sync.domain.entities.sync_result import RecordOutcome
from pms_sync.infrastructure.database.models import FamilyModel, PatientModel
from pms_sync.shared.constants.pms_constants import EntityType

MIN_FAMILY_MEMBERS = 2


class FamilySyncWorker(EntitySyncWorker[str]):
    """
    Recorre los pacientes mapeados y pide al PMS el grupo familiar de cada
    uno. Cada grupo se procesa una sola vez por corrida: los miembros de un
    grupo ya visto se ignoran.

    La familia se identifica por el id externo del garante; cada miembro
    mapeado recibe family_id y guarantor_id.
    """

    entity_type = EntityType.FAMILY
    model = FamilyModel
    provenance_column = "pms_guarantor_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[str]:
        return await ctx.mappings.list_pms_ids(ctx.tenant_id, EntityType.PATIENT.value)

    def record_id(self, record: str) -> str:
        return record

    async def sync_record(self, ctx: SyncContext, record: str) -> RecordOutcome:
        if record in ctx.seen:
            return RecordOutcome.IGNORED

        family = await self.adapter.fetch_family_members(record)
        ctx.seen.add(record)
        ctx.seen.update(family.member_pms_ids)

        if len(family.member_pms_ids) < MIN_FAMILY_MEMBERS:
            return RecordOutcome.IGNORED

        guarantor_id = await self.require_mapping(ctx, EntityType.PATIENT, family.guarantor_pms_id)
        guarantor = await ctx.db.get(PatientModel, guarantor_id)

        values = {
            "name": f"{guarantor.last_name} Family" if guarantor is not None else "Family",
            "guarantor_id": guarantor_id,
            "total_balance": family.total_balance,
        }
        outcome = await self.upsert_mapped(ctx, family.guarantor_pms_id, values)
        family_internal_id = await ctx.mappings.find_internal_id(
            ctx.tenant_id, self.entity_type.value, family.guarantor_pms_id
        )

        linked = 0
        for member_pms_id in family.member_pms_ids:
            member_id = await ctx.mappings.find_internal_id(ctx.tenant_id, EntityType.PATIENT.value, member_pms_id)
            if member_id is None:
                continue
            await ctx.db.execute(
                update(PatientModel)
                .where(PatientModel.id == member_id, PatientModel.tenant_id == ctx.tenant_id)
                .values(family_id=family_internal_id, guarantor_id=guarantor_id)
            )
            linked += 1

        logger.debug(
            f"[pms-sync] Familia {family.guarantor_pms_id}: {linked}/{len(family.member_pms_ids)} miembros vinculados"
        )
        return outcome
