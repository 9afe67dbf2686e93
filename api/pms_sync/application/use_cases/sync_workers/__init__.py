"""
Workers de sincronización por tipo de entidad.
"""
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pms_sync.application.interfaces.pms_adapter import PmsAdapter
from pms_sync.application.services.sync_lease import SyncLeaseManager
from pms_sync.application.use_cases.sync_workers.appointments import AppointmentSyncWorker
from pms_sync.application.use_cases.sync_workers.base import EntitySyncWorker, SyncContext
from pms_sync.application.use_cases.sync_workers.families import FamilySyncWorker
from pms_sync.application.use_cases.sync_workers.insurance import InsuranceSyncWorker
from pms_sync.application.use_cases.sync_workers.patients import PatientSyncWorker
from pms_sync.application.use_cases.sync_workers.procedures import ProcedureSyncWorker
from pms_sync.application.use_cases.sync_workers.reference_data import (
    OperatorySyncWorker,
    ProcedureCodeSyncWorker,
    ProviderSyncWorker,
)
from pms_sync.shared.constants.pms_constants import EntityType

WORKER_CLASSES = (
    ProcedureCodeSyncWorker,
    ProviderSyncWorker,
    OperatorySyncWorker,
    PatientSyncWorker,
    FamilySyncWorker,
    AppointmentSyncWorker,
    InsuranceSyncWorker,
    ProcedureSyncWorker,
)


def build_workers(
    adapter: PmsAdapter,
    session_factory: async_sessionmaker[AsyncSession],
    lease_manager: SyncLeaseManager,
) -> Dict[EntityType, EntitySyncWorker]:
    """Instancia un worker por tipo de entidad."""
    return {
        cls.entity_type: cls(adapter, session_factory, lease_manager)
        for cls in WORKER_CLASSES
    }


__all__ = [
    "EntitySyncWorker",
    "SyncContext",
    "build_workers",
    "AppointmentSyncWorker",
    "FamilySyncWorker",
    "InsuranceSyncWorker",
    "PatientSyncWorker",
    "ProcedureSyncWorker",
    "OperatorySyncWorker",
    "ProcedureCodeSyncWorker",
    "ProviderSyncWorker",
]
