"""
Repositorio de tenants y conteos de entidades sincronizadas.
"""
from typing import Dict, List, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pms_sync.infrastructure.database.models import (
    AppointmentModel,
    CompletedProcedureModel,
    FamilyModel,
    InsurancePolicyModel,
    OperatoryModel,
    PatientModel,
    ProcedureCodeModel,
    ProviderModel,
    TenantModel,
)
from pms_sync.shared.constants.pms_constants import EntityType, TenantStatus

# Tabla interna de cada tipo de entidad sincronizada
ENTITY_MODELS: Dict[EntityType, Type] = {
    EntityType.PROCEDURE_CODE: ProcedureCodeModel,
    EntityType.PROVIDER: ProviderModel,
    EntityType.OPERATORY: OperatoryModel,
    EntityType.PATIENT: PatientModel,
    EntityType.FAMILY: FamilyModel,
    EntityType.APPOINTMENT: AppointmentModel,
    EntityType.INSURANCE_POLICY: InsurancePolicyModel,
    EntityType.PROCEDURE: CompletedProcedureModel,
}


class TenantRepository:
    """Lecturas de tenants para el barrido programado e introspección."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, tenant_id: str) -> Optional[TenantModel]:
        return await self.db.get(TenantModel, tenant_id)

    async def list_active_ids(self) -> List[str]:
        query = (
            select(TenantModel.id)
            .where(TenantModel.status == TenantStatus.ACTIVE.value)
            .order_by(TenantModel.created_at, TenantModel.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_entities(self, tenant_id: str, entity_type: EntityType) -> int:
        """Cantidad de filas internas de un tipo de entidad para el tenant."""
        model = ENTITY_MODELS[entity_type]
        query = select(func.count()).select_from(model).where(model.tenant_id == tenant_id)
        return int(await self.db.scalar(query) or 0)
