"""
DTOs del API de sincronización PMS.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TriggerSyncRequestDTO(BaseModel):
    """Request para sincronizar un solo tipo de entidad (acepta alias)."""

    model_config = ConfigDict(populate_by_name=True)

    entity_type: str = Field(..., alias="entityType", min_length=1, description="Tipo de entidad o alias")


class SyncResultDTO(BaseModel):
    """Contadores de una etapa."""

    created: int = 0
    updated: int = 0
    errors: int = 0
    skipped: int = 0
    status: str
    error: Optional[str] = None


class FullSyncResponseDTO(BaseModel):
    """Resultado de un full sync ejecutado en primer plano."""

    tenant_id: str
    results: Dict[str, SyncResultDTO]


class FullSyncStartedDTO(BaseModel):
    """Respuesta inmediata cuando el full sync corre en background."""

    message: str
    status: str
    timestamp: datetime


class EntitySyncStatusDTO(BaseModel):
    entity_type: str
    last_sync_at: Optional[datetime] = None
    status: str  # synced | never
    record_count: int = 0


class SyncConfigDTO(BaseModel):
    pms_source: str
    configured: bool
    auto_sync: bool
    sync_interval_minutes: int
    last_full_sync: Optional[datetime] = None


class MappingDTO(BaseModel):
    id: int
    entity_type: str
    pms_id: str
    local_id: str
    synced_at: datetime
    sync_status: str


class MappingPageDTO(BaseModel):
    items: List[MappingDTO]
    total: int
    limit: int
    offset: int


class PushPatientResponseDTO(BaseModel):
    success: bool = True
    patient_id: str
    pms_id: str
