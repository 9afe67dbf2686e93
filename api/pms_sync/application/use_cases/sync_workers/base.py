"""
Algoritmo genérico de sincronización de un tipo de entidad.

Cada worker concreto define qué leer del PMS (`fetch`), qué registros se
descartan antes de cualquier efecto (`accepts`) y cómo se escribe un registro
(`sync_record`). El ciclo común vive aquí:

1. Sin adapter configurado: resultado en cero, no-op.
2. Lease exclusivo (tenant, entity_type) durante toda la corrida, renovado en
   segundo plano; si se pierde, la corrida se aborta sin avanzar la marca.
3. Marca de agua -> fetch incremental.
4. Registro a registro, con commit propio: una brecha de dependencia se
   cuenta como `skipped`, cualquier otro fallo como `errors`, y se sigue.
5. La marca de agua avanza al instante previo al fetch solo si fetch y bucle
   terminaron.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, Optional, Sequence, Set, Type, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pms_sync.application.interfaces.pms_adapter import PmsAdapter
from pms_sync.application.services.sync_lease import SyncLeaseManager
from pms_sync.domain.entities.sync_result import RecordOutcome, SyncResult
from pms_sync.infrastructure.repositories.mapping_repository import MappingRepository
from pms_sync.infrastructure.repositories.watermark_repository import WatermarkRepository
from pms_sync.shared.constants.pms_constants import EntityType
from pms_sync.shared.exceptions.sync import MissingDependencyError
from pms_sync.shared.utils.datetime_utils import utc_now

R = TypeVar("R")


@dataclass
class SyncContext:
    """Estado de una corrida de un worker para un tenant."""

    tenant_id: str
    pms_source: str
    db: AsyncSession
    mappings: MappingRepository
    since: Optional[datetime] = None
    # Ids ya procesados en esta corrida (lo usa el worker de familias)
    seen: Set[str] = field(default_factory=set)


class EntitySyncWorker(Generic[R]):
    """Base de los workers: pull -> map -> upsert -> count."""

    entity_type: EntityType
    model: Type
    # Columna de procedencia con el id externo en la tabla interna
    provenance_column: str

    def __init__(
        self,
        adapter: PmsAdapter,
        session_factory: async_sessionmaker[AsyncSession],
        lease_manager: SyncLeaseManager,
    ):
        self.adapter = adapter
        self.session_factory = session_factory
        self.lease_manager = lease_manager

    @property
    def pms_source(self) -> str:
        return self.adapter.pms_source

    # ------------------------------------------------------------------
    # Puntos de extensión
    # ------------------------------------------------------------------

    async def fetch(self, ctx: SyncContext) -> Sequence[R]:
        raise NotImplementedError

    def accepts(self, record: R) -> bool:
        """Filtro duro previo a cualquier efecto; los descartados no se cuentan."""
        return True

    def record_id(self, record: R) -> str:
        return getattr(record, "pms_id")

    async def sync_record(self, ctx: SyncContext, record: R) -> RecordOutcome:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Ciclo común
    # ------------------------------------------------------------------

    async def run(self, tenant_id: str) -> SyncResult:
        entity = self.entity_type.value
        result = SyncResult()

        if not self.adapter.is_configured():
            logger.info(f"[pms-sync] {entity}: PMS no configurado, nada que sincronizar")
            return result

        async with self.lease_manager.hold(tenant_id, entity) as lease:
            async with self.session_factory() as db:
                watermarks = WatermarkRepository(db, self.pms_source)
                since = await watermarks.get(tenant_id, entity)
                # Se toma antes del fetch: lo modificado durante la corrida se relee
                run_started_at = utc_now()

                ctx = SyncContext(
                    tenant_id=tenant_id,
                    pms_source=self.pms_source,
                    db=db,
                    mappings=MappingRepository(db, self.pms_source),
                    since=since,
                )
                records = await self.fetch(ctx)
                logger.info(
                    f"[pms-sync] {entity}: {len(records)} registros recibidos para tenant {tenant_id}"
                    f"{f' desde {since.isoformat()}' if since else ' (historial completo)'}"
                )

                for record in records:
                    # Si otra corrida retomó el lease se aborta sin avanzar la marca
                    lease.check()
                    if not self.accepts(record):
                        continue
                    await self._sync_one(ctx, record, result)

                await self.lease_manager.confirm(lease)
                await watermarks.advance(tenant_id, entity, run_started_at)
                await db.commit()

        logger.info(
            f"[pms-sync] {entity} tenant {tenant_id}: creados={result.created} "
            f"actualizados={result.updated} omitidos={result.skipped} errores={result.errors}"
        )
        return result

    async def _sync_one(self, ctx: SyncContext, record: R, result: SyncResult) -> None:
        pms_id = self.record_id(record)
        try:
            outcome = await self.sync_record(ctx, record)
            await ctx.db.commit()
        except MissingDependencyError as e:
            await ctx.db.rollback()
            result.skipped += 1
            logger.debug(f"[pms-sync] {self.entity_type.value} {pms_id} omitido: {e}")
            return
        except Exception as e:
            await ctx.db.rollback()
            result.errors += 1
            logger.error(f"[pms-sync] Error sincronizando {self.entity_type.value} {pms_id}: {e}")
            return
        result.record(outcome)

    # ------------------------------------------------------------------
    # Helpers para workers concretos
    # ------------------------------------------------------------------

    async def require_mapping(self, ctx: SyncContext, entity_type: EntityType, pms_id: Optional[str]) -> str:
        """Id interno de una entidad padre; MissingDependencyError si no está mapeada."""
        internal_id = await ctx.mappings.find_internal_id(ctx.tenant_id, entity_type.value, pms_id)
        if internal_id is None:
            raise MissingDependencyError(entity_type.value, pms_id or "")
        return internal_id

    async def load_mapped(self, ctx: SyncContext, pms_id: str) -> Optional[Any]:
        """Fila interna ya mapeada para este id externo, si existe."""
        internal_id = await ctx.mappings.find_internal_id(ctx.tenant_id, self.entity_type.value, pms_id)
        if internal_id is None:
            return None
        return await ctx.db.get(self.model, internal_id)

    async def upsert_mapped(
        self,
        ctx: SyncContext,
        pms_id: str,
        values: Dict[str, Any],
        create_only: Optional[Dict[str, Any]] = None,
    ) -> RecordOutcome:
        """
        Actualiza por id interno si el registro externo ya está mapeado; si no,
        crea la fila con procedencia y su mapeo. `create_only` son campos que
        no se tocan en actualizaciones. No hace commit.
        """
        entity = self.entity_type.value
        mapping = await ctx.mappings.find(ctx.tenant_id, entity, pms_id)

        if mapping is not None:
            internal_id = mapping.internal_id
            row = await ctx.db.get(self.model, internal_id)
            if row is not None:
                for key, value in values.items():
                    setattr(row, key, value)
                await ctx.db.flush()
                await ctx.mappings.touch(ctx.tenant_id, entity, pms_id)
                return RecordOutcome.UPDATED

            # Mapeo huérfano: se recrea la fila con el mismo id interno
            logger.warning(f"[pms-sync] {entity} {pms_id}: fila interna {internal_id} no existe, se recrea")
            self._add_row(ctx, internal_id, pms_id, values, create_only)
            await ctx.db.flush()
            await ctx.mappings.touch(ctx.tenant_id, entity, pms_id)
            return RecordOutcome.CREATED

        internal_id = str(uuid.uuid4())
        self._add_row(ctx, internal_id, pms_id, values, create_only)
        await ctx.db.flush()
        await ctx.mappings.create(ctx.tenant_id, entity, pms_id, internal_id)
        return RecordOutcome.CREATED

    def _add_row(
        self,
        ctx: SyncContext,
        internal_id: str,
        pms_id: str,
        values: Dict[str, Any],
        create_only: Optional[Dict[str, Any]],
    ) -> None:
        row = self.model(
            id=internal_id,
            tenant_id=ctx.tenant_id,
            pms_source=ctx.pms_source,
            **{self.provenance_column: pms_id},
            **(create_only or {}),
            **values,
        )
        ctx.db.add(row)
