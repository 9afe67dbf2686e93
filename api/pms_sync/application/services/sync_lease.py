"""
Lease exclusivo por (tenant, entity_type) para evitar corridas solapadas.
"""
from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from typing import AsyncIterator

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pms_sync.infrastructure.repositories.lease_repository import LeaseRepository
from pms_sync.shared.exceptions.sync import SyncLeaseUnavailableException


@dataclass
class HeldLease:
    """Lease tomado por una corrida; `lost` se activa si otra corrida lo retoma."""

    tenant_id: str
    entity_type: str
    holder: str
    lost: bool = False

    def check(self) -> None:
        if self.lost:
            raise SyncLeaseUnavailableException(self.tenant_id, self.entity_type)


class SyncLeaseManager:
    """
    Adquiere, renueva y libera leases en sesiones propias.

    Uso:
        async with lease_manager.hold(tenant_id, "patient") as lease:
            ...  # corrida del worker, lease.check() entre registros

    Si otra corrida tiene el lease vigente se lanza
    SyncLeaseUnavailableException sin ejecutar el bloque. Mientras el bloque
    corre, una tarea renueva el lease cada mitad del TTL.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], pms_source: str, ttl_seconds: int):
        self._session_factory = session_factory
        self._pms_source = pms_source
        self._ttl_seconds = ttl_seconds

    async def renew(self, lease: HeldLease) -> bool:
        async with self._session_factory() as db:
            renewed = await LeaseRepository(db, self._pms_source).renew(
                lease.tenant_id, lease.entity_type, lease.holder, self._ttl_seconds
            )
        if not renewed:
            lease.lost = True
            logger.error(f"[lease] {lease.tenant_id}/{lease.entity_type} perdido: lo tomó otra corrida")
        return renewed

    async def confirm(self, lease: HeldLease) -> None:
        """Renueva en el momento; lanza SyncLeaseUnavailableException si ya no es nuestro."""
        lease.check()
        await self.renew(lease)
        lease.check()

    async def _heartbeat(self, lease: HeldLease) -> None:
        interval = self._ttl_seconds / 2
        while not lease.lost:
            await asyncio.sleep(interval)
            try:
                await self.renew(lease)
            except Exception as e:
                # Se reintenta en el siguiente intervalo; si vence, renew devolverá False
                logger.warning(f"[lease] No se pudo renovar {lease.tenant_id}/{lease.entity_type}: {e}")

    @asynccontextmanager
    async def hold(self, tenant_id: str, entity_type: str) -> AsyncIterator[HeldLease]:
        lease = HeldLease(tenant_id=tenant_id, entity_type=entity_type, holder=uuid.uuid4().hex)

        async with self._session_factory() as db:
            acquired = await LeaseRepository(db, self._pms_source).try_acquire(
                tenant_id, entity_type, lease.holder, self._ttl_seconds
            )
        if not acquired:
            logger.warning(f"[lease] {tenant_id}/{entity_type} ocupado por otra corrida")
            raise SyncLeaseUnavailableException(tenant_id, entity_type)

        heartbeat = asyncio.create_task(self._heartbeat(lease))
        try:
            yield lease
        finally:
            heartbeat.cancel()
            with suppress(asyncio.CancelledError):
                await heartbeat
            async with self._session_factory() as db:
                await LeaseRepository(db, self._pms_source).release(tenant_id, entity_type, lease.holder)
