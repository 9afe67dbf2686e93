"""
Dependencias para inyección de casos de uso.
"""
from functools import lru_cache

from fastapi import Depends, Header

from pms_sync.application.interfaces.pms_adapter import PmsAdapter
from pms_sync.application.use_cases.pms_sync_use_cases import PmsSyncUseCases
from pms_sync.infrastructure.external.adapter_factory import build_pms_adapter
from pms_sync.shared.exceptions.domain import ValidationException


@lru_cache(maxsize=1)
def get_pms_adapter() -> PmsAdapter:
    """Adapter PMS compartido por el proceso (reutiliza la sesión HTTP)."""
    return build_pms_adapter()


def get_pms_sync_use_cases(
    adapter: PmsAdapter = Depends(get_pms_adapter)
) -> PmsSyncUseCases:
    """
    Dependencia para obtener los casos de uso de sincronización PMS.

    Returns:
        PmsSyncUseCases: Orquestador con su propia session factory
    """
    return PmsSyncUseCases(adapter)


def get_tenant_id(x_tenant_id: str = Header(..., alias="X-Tenant-ID")) -> str:
    """Tenant de la request; la autenticación vive fuera de este servicio."""
    tenant_id = x_tenant_id.strip()
    if not tenant_id:
        raise ValidationException("X-Tenant-ID no puede estar vacío", field="X-Tenant-ID")
    return tenant_id
