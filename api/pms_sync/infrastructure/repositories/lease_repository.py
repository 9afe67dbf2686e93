"""
Repositorio de leases de sincronización.
"""
from datetime import timedelta

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pms_sync.infrastructure.database.models import SyncLeaseModel
from pms_sync.shared.utils.datetime_utils import utc_now


class LeaseRepository:
    """
    Gestiona la tabla sync_leases.

    Un lease es una fila por (tenant, source, entity_type). Se adquiere si no
    existe o si la existente ya expiró. Estos métodos hacen commit propio: el
    lease vive en su propia sesión, separado del trabajo del worker.
    """

    def __init__(self, db: AsyncSession, pms_source: str):
        self.db = db
        self.pms_source = pms_source

    def _key(self, tenant_id: str, entity_type: str):
        return (
            SyncLeaseModel.tenant_id == tenant_id,
            SyncLeaseModel.pms_source == self.pms_source,
            SyncLeaseModel.entity_type == entity_type,
        )

    async def try_acquire(self, tenant_id: str, entity_type: str, holder: str, ttl_seconds: int) -> bool:
        now = utc_now()
        expires_at = now + timedelta(seconds=ttl_seconds)

        # Toma de un lease expirado
        stmt = (
            update(SyncLeaseModel)
            .where(*self._key(tenant_id, entity_type), SyncLeaseModel.expires_at <= now)
            .values(holder=holder, acquired_at=now, expires_at=expires_at)
        )
        result = await self.db.execute(stmt)
        if result.rowcount:
            await self.db.commit()
            logger.info(f"[lease] Lease expirado retomado: {tenant_id}/{entity_type}")
            return True

        existing = await self.db.execute(select(SyncLeaseModel.id).where(*self._key(tenant_id, entity_type)))
        if existing.first() is not None:
            await self.db.rollback()
            return False

        self.db.add(SyncLeaseModel(
            tenant_id=tenant_id,
            pms_source=self.pms_source,
            entity_type=entity_type,
            holder=holder,
            acquired_at=now,
            expires_at=expires_at,
        ))
        try:
            await self.db.commit()
        except IntegrityError:
            # Otra corrida insertó la fila entre el select y el commit
            await self.db.rollback()
            return False
        return True

    async def renew(self, tenant_id: str, entity_type: str, holder: str, ttl_seconds: int) -> bool:
        """
        Extiende el vencimiento si el lease sigue siendo de `holder`.

        Returns:
            bool: False si otra corrida lo tomó o la fila ya no existe
        """
        stmt = (
            update(SyncLeaseModel)
            .where(*self._key(tenant_id, entity_type), SyncLeaseModel.holder == holder)
            .values(expires_at=utc_now() + timedelta(seconds=ttl_seconds))
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return bool(result.rowcount)

    async def release(self, tenant_id: str, entity_type: str, holder: str) -> None:
        """Borra el lease solo si sigue siendo de `holder`."""
        stmt = delete(SyncLeaseModel).where(
            *self._key(tenant_id, entity_type),
            SyncLeaseModel.holder == holder,
        )
        await self.db.execute(stmt)
        await self.db.commit()
