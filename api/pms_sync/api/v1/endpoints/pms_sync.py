"""
Endpoints de sincronización PMS.
Permiten consultar el estado del motor y disparar sincronizaciones.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from fastapi import APIRouter, Depends, Query, Response, status
from loguru import logger

from pms_sync.api.v1.dependencies.use_case_deps import get_pms_sync_use_cases, get_tenant_id
from pms_sync.application.dto.sync_dto import (
    EntitySyncStatusDTO,
    FullSyncResponseDTO,
    FullSyncStartedDTO,
    MappingPageDTO,
    PushPatientResponseDTO,
    SyncConfigDTO,
    SyncResultDTO,
    TriggerSyncRequestDTO,
)
from pms_sync.application.use_cases.pms_sync_use_cases import PmsSyncUseCases
from pms_sync.domain.entities.sync_result import SyncResult


router = APIRouter(prefix="/pms-sync", tags=["PMS Sync"])

# Referencias a los full sync en background para que no los recolecte el GC
_background_tasks: Set[asyncio.Task] = set()


async def _run_full_sync_in_background(use_cases: PmsSyncUseCases, tenant_id: str) -> None:
    try:
        await use_cases.full_sync(tenant_id)
    except Exception as e:
        logger.error(f"[pms-sync] Full sync en background falló para tenant {tenant_id}: {e}")


@router.get("/status", summary="Última sincronización por tipo de entidad")
async def get_sync_status(
    tenant_id: str = Depends(get_tenant_id),
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> Dict[str, Optional[datetime]]:
    return await use_cases.get_sync_status(tenant_id)


@router.get(
    "/status/entities",
    response_model=List[EntitySyncStatusDTO],
    summary="Estado y conteo de registros por tipo de entidad",
)
async def get_sync_status_list(
    tenant_id: str = Depends(get_tenant_id),
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> List[EntitySyncStatusDTO]:
    return await use_cases.get_sync_status_list(tenant_id)


@router.get("/config", response_model=SyncConfigDTO, summary="Configuración de sincronización")
async def get_sync_config(
    tenant_id: str = Depends(get_tenant_id),
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> SyncConfigDTO:
    return await use_cases.get_sync_config(tenant_id)


@router.get("/configured", summary="Indica si el PMS tiene credenciales")
async def is_configured(
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> Dict[str, bool]:
    return {"configured": use_cases.is_configured()}


@router.get("/mappings", response_model=MappingPageDTO, summary="Mapeos de ids PMS <-> internos")
async def get_mappings(
    limit: Optional[int] = Query(default=None, ge=1, description="Tamaño de página (se acota al máximo)"),
    offset: int = Query(default=0, ge=0),
    tenant_id: str = Depends(get_tenant_id),
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> MappingPageDTO:
    return await use_cases.get_mappings(tenant_id, limit=limit, offset=offset)


@router.post("/trigger", summary="Sincronizar un tipo de entidad")
async def trigger_sync(
    dto: TriggerSyncRequestDTO,
    tenant_id: str = Depends(get_tenant_id),
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> Dict[str, Any]:
    """
    Ejecuta un solo worker. Responde 409 si ya hay una corrida en curso para
    ese tipo de entidad.
    """
    result = await use_cases.trigger_sync(tenant_id, dto.entity_type)
    if isinstance(result, SyncResult):
        return SyncResultDTO(**result.to_dict()).model_dump()
    return result


@router.post(
    "/full-sync",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Full sync de todas las entidades",
)
async def full_sync(
    response: Response,
    wait: bool = Query(default=False, description="Si True, espera y devuelve los resultados"),
    tenant_id: str = Depends(get_tenant_id),
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> Dict[str, Any]:
    """
    Por defecto corre en background y responde 202 de inmediato.
    """
    if wait:
        results = await use_cases.full_sync(tenant_id)
        response.status_code = status.HTTP_200_OK
        return FullSyncResponseDTO(
            tenant_id=tenant_id,
            results={k: SyncResultDTO(**v.to_dict()) for k, v in results.items()},
        ).model_dump()

    task = asyncio.create_task(_run_full_sync_in_background(use_cases, tenant_id))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return FullSyncStartedDTO(
        message="Full sync started in background",
        status="processing",
        timestamp=datetime.now(timezone.utc),
    ).model_dump(mode="json")


@router.post(
    "/patients/{patient_id}/push",
    response_model=PushPatientResponseDTO,
    summary="Crear un paciente interno en el PMS",
)
async def push_patient(
    patient_id: str,
    tenant_id: str = Depends(get_tenant_id),
    use_cases: PmsSyncUseCases = Depends(get_pms_sync_use_cases),
) -> PushPatientResponseDTO:
    pms_id = await use_cases.push_patient_to_pms(tenant_id, patient_id)
    return PushPatientResponseDTO(patient_id=patient_id, pms_id=pms_id)
