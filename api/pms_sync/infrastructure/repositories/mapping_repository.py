"""
Repositorio del mapeo de identidades PMS <-> interno.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pms_sync.infrastructure.database.models import PmsMappingModel
from pms_sync.shared.constants.pms_constants import MAPPING_STATUS_SYNCED
from pms_sync.shared.utils.datetime_utils import utc_now


class MappingRepository:
    """
    Única fuente de verdad para "este registro externo ya existe internamente".

    Los métodos de escritura hacen flush pero no commit: el worker decide el
    límite transaccional de cada registro.
    """

    def __init__(self, db: AsyncSession, pms_source: str):
        self.db = db
        self.pms_source = pms_source

    def _scope(self, tenant_id: str, entity_type: str):
        return (
            PmsMappingModel.tenant_id == tenant_id,
            PmsMappingModel.pms_source == self.pms_source,
            PmsMappingModel.entity_type == entity_type,
        )

    async def find(self, tenant_id: str, entity_type: str, pms_id: str) -> Optional[PmsMappingModel]:
        query = select(PmsMappingModel).where(
            *self._scope(tenant_id, entity_type),
            PmsMappingModel.pms_id == str(pms_id),
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_internal_id(self, tenant_id: str, entity_type: str, pms_id: Optional[str]) -> Optional[str]:
        """Atajo: id interno mapeado o None."""
        if not pms_id:
            return None
        mapping = await self.find(tenant_id, entity_type, pms_id)
        return mapping.internal_id if mapping else None

    async def find_by_internal_id(
        self, tenant_id: str, entity_type: str, internal_id: str
    ) -> Optional[PmsMappingModel]:
        query = select(PmsMappingModel).where(
            *self._scope(tenant_id, entity_type),
            PmsMappingModel.internal_id == internal_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self,
        tenant_id: str,
        entity_type: str,
        pms_id: str,
        internal_id: str,
        synced_at: Optional[datetime] = None,
    ) -> PmsMappingModel:
        mapping = PmsMappingModel(
            tenant_id=tenant_id,
            pms_source=self.pms_source,
            entity_type=entity_type,
            pms_id=str(pms_id),
            internal_id=internal_id,
            last_synced_at=synced_at or utc_now(),
            sync_status=MAPPING_STATUS_SYNCED,
        )
        self.db.add(mapping)
        await self.db.flush()
        return mapping

    async def touch(self, tenant_id: str, entity_type: str, pms_id: str) -> None:
        """Actualiza solo last_synced_at de un mapeo existente."""
        stmt = (
            update(PmsMappingModel)
            .where(*self._scope(tenant_id, entity_type), PmsMappingModel.pms_id == str(pms_id))
            .values(last_synced_at=utc_now(), sync_status=MAPPING_STATUS_SYNCED)
        )
        await self.db.execute(stmt)

    async def list_pms_ids(self, tenant_id: str, entity_type: str) -> List[str]:
        query = (
            select(PmsMappingModel.pms_id)
            .where(*self._scope(tenant_id, entity_type))
            .order_by(PmsMappingModel.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_for_tenant(
        self, tenant_id: str, limit: int, offset: int = 0
    ) -> Tuple[List[PmsMappingModel], int]:
        """Página de mapeos del tenant (más recientes primero) y total."""
        base = (
            PmsMappingModel.tenant_id == tenant_id,
            PmsMappingModel.pms_source == self.pms_source,
        )
        total = await self.db.scalar(select(func.count()).select_from(PmsMappingModel).where(*base))
        query = (
            select(PmsMappingModel)
            .where(*base)
            .order_by(PmsMappingModel.last_synced_at.desc(), PmsMappingModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), int(total or 0)
