"""
Repositorio de marcas de agua de sincronización.
"""
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pms_sync.infrastructure.database.models import SyncWatermarkModel
from pms_sync.shared.utils.datetime_utils import ensure_utc, utc_now


class WatermarkRepository:
    """
    Gestiona la tabla sync_watermarks.

    El valor por (tenant, source, entity_type) solo avanza: nunca retrocede y
    un valor igual al anterior se desplaza 1 microsegundo.
    """

    def __init__(self, db: AsyncSession, pms_source: str):
        self.db = db
        self.pms_source = pms_source

    async def _get_row(self, tenant_id: str, entity_type: str) -> Optional[SyncWatermarkModel]:
        query = select(SyncWatermarkModel).where(
            SyncWatermarkModel.tenant_id == tenant_id,
            SyncWatermarkModel.pms_source == self.pms_source,
            SyncWatermarkModel.entity_type == entity_type,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get(self, tenant_id: str, entity_type: str) -> Optional[datetime]:
        """Última sincronización exitosa, o None (historial completo)."""
        row = await self._get_row(tenant_id, entity_type)
        if row is None or row.last_synced_at is None:
            return None
        return ensure_utc(row.last_synced_at)

    async def advance(
        self, tenant_id: str, entity_type: str, synced_at: Optional[datetime] = None
    ) -> datetime:
        """
        Upsert monótono de la marca de agua. No hace commit.

        Returns:
            datetime: Valor efectivamente almacenado
        """
        value = ensure_utc(synced_at or utc_now())
        row = await self._get_row(tenant_id, entity_type)

        if row is None:
            row = SyncWatermarkModel(
                tenant_id=tenant_id,
                pms_source=self.pms_source,
                entity_type=entity_type,
                last_synced_at=value,
            )
            self.db.add(row)
        else:
            previous = ensure_utc(row.last_synced_at) if row.last_synced_at else None
            if previous is not None and value <= previous:
                value = previous + timedelta(microseconds=1)
            row.last_synced_at = value

        await self.db.flush()
        return value

    async def list_for_tenant(self, tenant_id: str) -> Dict[str, datetime]:
        query = select(SyncWatermarkModel).where(
            SyncWatermarkModel.tenant_id == tenant_id,
            SyncWatermarkModel.pms_source == self.pms_source,
        )
        result = await self.db.execute(query)
        return {
            row.entity_type: ensure_utc(row.last_synced_at)
            for row in result.scalars().all()
            if row.last_synced_at is not None
        }
