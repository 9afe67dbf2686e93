"""
Casos de uso del motor de sincronización PMS.

Orquesta los workers por tipo de entidad:
- full_sync: todas las etapas en orden de dependencias, una tras otra.
- trigger_sync: una sola etapa, por nombre o alias.
- scheduled_sync: full_sync de cada tenant activo en un pool acotado.
Además expone la introspección (estado, configuración, mapeos) y el push
puntual de un paciente al PMS.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pms_sync.application.dto.sync_dto import (
    EntitySyncStatusDTO,
    MappingDTO,
    MappingPageDTO,
    SyncConfigDTO,
)
from pms_sync.application.interfaces.pms_adapter import PmsAdapter
from pms_sync.application.services.sync_lease import SyncLeaseManager
from pms_sync.application.use_cases.sync_workers import EntitySyncWorker, build_workers
from pms_sync.core.config import Settings, settings as default_settings
from pms_sync.domain.entities.pms_records import OutboundPatient
from pms_sync.domain.entities.sync_result import SyncResult
from pms_sync.infrastructure.database.models import PatientModel
from pms_sync.infrastructure.database.session import AsyncSessionLocal
from pms_sync.infrastructure.repositories.mapping_repository import MappingRepository
from pms_sync.infrastructure.repositories.tenant_repository import TenantRepository
from pms_sync.infrastructure.repositories.watermark_repository import WatermarkRepository
from pms_sync.shared.constants.pms_constants import ENTITY_TYPE_ALIASES, FULL_SYNC_ORDER, EntityType
from pms_sync.shared.exceptions.domain import EntityAlreadyExistsException, EntityNotFoundException
from pms_sync.shared.exceptions.sync import PmsNotConfiguredException


class PmsSyncUseCases:
    """
    Orquestador de sincronización PMS -> base interna.

    Las etapas y los registros corren siempre en secuencia dentro de un
    tenant; solo el barrido programado paraleliza, y entre tenants.
    """

    def __init__(
        self,
        adapter: PmsAdapter,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        config: Optional[Settings] = None,
    ):
        self.adapter = adapter
        self.config = config or default_settings
        self.session_factory = session_factory or AsyncSessionLocal
        self.lease_manager = SyncLeaseManager(
            self.session_factory,
            adapter.pms_source,
            self.config.PMS_SYNC_LEASE_TTL_SECONDS,
        )
        self.workers: Dict[EntityType, EntitySyncWorker] = build_workers(
            adapter, self.session_factory, self.lease_manager
        )

    @property
    def pms_source(self) -> str:
        return self.adapter.pms_source

    def is_configured(self) -> bool:
        return self.adapter.is_configured()

    # =========================================================================
    # Sincronización
    # =========================================================================

    async def full_sync(self, tenant_id: str) -> Dict[str, SyncResult]:
        """
        Ejecuta todas las etapas en orden de dependencias.

        Si una etapa lanza excepción queda como failed y las restantes como
        not_run; lo ya confirmado por etapas anteriores se conserva.
        """
        started = time.monotonic()
        results: Dict[str, SyncResult] = {}
        logger.info(f"[full-sync] Iniciando para tenant {tenant_id}")

        aborted = False
        for entity_type in FULL_SYNC_ORDER:
            if aborted:
                results[entity_type.value] = SyncResult.not_run()
                continue
            try:
                results[entity_type.value] = await self.workers[entity_type].run(tenant_id)
            except Exception as e:
                logger.error(f"[full-sync] Etapa {entity_type.value} falló para tenant {tenant_id}: {e}")
                results[entity_type.value] = SyncResult.failed(str(e))
                aborted = True

        duration = time.monotonic() - started
        summary = {k: v.to_dict() for k, v in results.items()}
        logger.info(f"[full-sync] Tenant {tenant_id} terminado en {duration:.2f}s - {summary}")
        return results

    async def trigger_sync(self, tenant_id: str, entity_type: str) -> Union[SyncResult, Dict[str, str]]:
        """
        Sincroniza un solo tipo de entidad. Las excepciones se propagan.

        Returns:
            SyncResult, o {"message": ...} si el tipo no existe
        """
        resolved = ENTITY_TYPE_ALIASES.get(entity_type.strip().lower())
        if resolved is None:
            return {"message": f"Sync not implemented for {entity_type}"}
        logger.info(f"[pms-sync] Trigger {resolved.value} para tenant {tenant_id}")
        return await self.workers[resolved].run(tenant_id)

    async def scheduled_sync(self) -> Dict[str, Any]:
        """
        Barrido periódico sobre todos los tenants activos.

        Un tenant que falla no afecta a los demás. No hace nada si el PMS no
        está configurado.
        """
        if not self.is_configured():
            logger.debug("[scheduled-sync] PMS no configurado, se omite")
            return {"tenants": 0, "failed": []}

        async with self.session_factory() as db:
            tenant_ids = await TenantRepository(db).list_active_ids()

        logger.info(f"[scheduled-sync] {len(tenant_ids)} tenants activos")
        semaphore = asyncio.Semaphore(max(1, self.config.PMS_SYNC_MAX_CONCURRENT_TENANTS))
        failed: List[str] = []

        async def _run_tenant(tenant_id: str) -> None:
            async with semaphore:
                try:
                    await self.full_sync(tenant_id)
                except Exception as e:
                    failed.append(tenant_id)
                    logger.error(f"[scheduled-sync] Fallo tenant {tenant_id}: {e}")

        await asyncio.gather(*(_run_tenant(tid) for tid in tenant_ids))

        if failed:
            logger.warning(f"[scheduled-sync] Terminado con {len(failed)} tenants fallidos")
        else:
            logger.success(f"[scheduled-sync] Terminado: {len(tenant_ids)} tenants")
        return {"tenants": len(tenant_ids), "failed": failed}

    # =========================================================================
    # Introspección
    # =========================================================================

    async def get_sync_status(self, tenant_id: str) -> Dict[str, Optional[datetime]]:
        """Última sincronización por tipo de entidad."""
        async with self.session_factory() as db:
            watermarks = await WatermarkRepository(db, self.pms_source).list_for_tenant(tenant_id)
        return {et.value: watermarks.get(et.value) for et in FULL_SYNC_ORDER}

    async def get_sync_status_list(self, tenant_id: str) -> List[EntitySyncStatusDTO]:
        """Estado por tipo de entidad con conteo de filas internas."""
        async with self.session_factory() as db:
            watermarks = await WatermarkRepository(db, self.pms_source).list_for_tenant(tenant_id)
            tenants = TenantRepository(db)
            items: List[EntitySyncStatusDTO] = []
            for entity_type in FULL_SYNC_ORDER:
                last = watermarks.get(entity_type.value)
                items.append(EntitySyncStatusDTO(
                    entity_type=entity_type.value,
                    last_sync_at=last,
                    status="synced" if last else "never",
                    record_count=await tenants.count_entities(tenant_id, entity_type),
                ))
        return items

    async def get_sync_config(self, tenant_id: str) -> SyncConfigDTO:
        async with self.session_factory() as db:
            watermarks = await WatermarkRepository(db, self.pms_source).list_for_tenant(tenant_id)
        configured = self.is_configured()
        return SyncConfigDTO(
            pms_source=self.pms_source,
            configured=configured,
            auto_sync=configured and self.config.PMS_SYNC_SCHEDULER_ENABLED,
            sync_interval_minutes=self.config.PMS_SYNC_INTERVAL_MINUTES,
            last_full_sync=max(watermarks.values()) if watermarks else None,
        )

    async def get_mappings(self, tenant_id: str, limit: Optional[int] = None, offset: int = 0) -> MappingPageDTO:
        """Página de mapeos, más recientes primero. limit se acota al máximo configurado."""
        limit = limit or self.config.PMS_MAPPINGS_PAGE_SIZE
        limit = max(1, min(limit, self.config.PMS_MAPPINGS_MAX_PAGE_SIZE))
        offset = max(0, offset)

        async with self.session_factory() as db:
            rows, total = await MappingRepository(db, self.pms_source).list_for_tenant(tenant_id, limit, offset)

        return MappingPageDTO(
            items=[
                MappingDTO(
                    id=m.id,
                    entity_type=m.entity_type,
                    pms_id=m.pms_id,
                    local_id=m.internal_id,
                    synced_at=m.last_synced_at,
                    sync_status=m.sync_status,
                )
                for m in rows
            ],
            total=total,
            limit=limit,
            offset=offset,
        )

    # =========================================================================
    # Push puntual
    # =========================================================================

    async def push_patient_to_pms(self, tenant_id: str, patient_id: str) -> str:
        """
        Crea en el PMS un paciente interno que aún no tiene mapeo.

        Returns:
            str: Id externo asignado por el PMS

        Raises:
            EntityNotFoundException: El paciente no existe en el tenant
            EntityAlreadyExistsException: El paciente ya está mapeado
            PmsNotConfiguredException: No hay credenciales del PMS
        """
        async with self.session_factory() as db:
            result = await db.execute(
                select(PatientModel).where(PatientModel.id == patient_id, PatientModel.tenant_id == tenant_id)
            )
            patient = result.scalar_one_or_none()
            if patient is None:
                raise EntityNotFoundException("Patient", patient_id)

            mappings = MappingRepository(db, self.pms_source)
            if await mappings.find_by_internal_id(tenant_id, EntityType.PATIENT.value, patient_id):
                raise EntityAlreadyExistsException("PmsMapping", "patient_id", patient_id)

            if not self.is_configured():
                raise PmsNotConfiguredException(self.pms_source)

            pms_id = await self.adapter.push_patient(OutboundPatient(
                first_name=patient.first_name,
                last_name=patient.last_name,
                middle_name=patient.middle_name,
                dob=patient.dob,
                email=patient.email,
                phone=patient.phone,
                mobile_phone=patient.mobile_phone,
                work_phone=patient.work_phone,
                address=patient.address,
                gender=patient.gender,
            ))

            await mappings.create(tenant_id, EntityType.PATIENT.value, pms_id, patient_id)
            patient.pms_source = self.pms_source
            patient.pms_patient_id = pms_id
            await db.commit()

        logger.success(f"[pms-sync] Paciente {patient_id} enviado al PMS con ID {pms_id}")
        return pms_id
