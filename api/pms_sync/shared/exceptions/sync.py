"""
Excepciones del motor de sincronización PMS.
"""
from typing import Optional

from pms_sync.shared.exceptions.base import AppException


class PmsNotConfiguredException(AppException):
    """El adapter PMS no tiene credenciales (solo se lanza en operaciones de push)."""

    def __init__(self, pms_source: str):
        super().__init__(
            message=f"Integración PMS '{pms_source}' no configurada",
            status_code=503,
            error_code="PMS_NOT_CONFIGURED",
            details={"pms_source": pms_source},
        )


class PmsApiException(AppException):
    """Fallo de la API externa del PMS (red, auth, rate limit, 5xx)."""

    def __init__(self, message: str, endpoint: str, http_status: Optional[int] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="PMS_API_ERROR",
            details={"endpoint": endpoint, "http_status": http_status},
        )
        self.endpoint = endpoint
        self.http_status = http_status


class SyncLeaseUnavailableException(AppException):
    """Otra corrida mantiene el lease de (tenant, entity_type)."""

    def __init__(self, tenant_id: str, entity_type: str):
        super().__init__(
            message=f"Ya hay una sincronización de '{entity_type}' en curso para el tenant {tenant_id}",
            status_code=409,
            error_code="SYNC_IN_PROGRESS",
            details={"tenant_id": tenant_id, "entity_type": entity_type},
        )
        self.tenant_id = tenant_id
        self.entity_type = entity_type


class MissingDependencyError(Exception):
    """
    Brecha de dependencia: la entidad padre aún no tiene mapeo.

    Uso interno de los workers; el registro dependiente se omite y se
    cuenta como `skipped`, nunca como error.
    """

    def __init__(self, entity_type: str, pms_id: str):
        self.entity_type = entity_type
        self.pms_id = pms_id
        super().__init__(f"Sin mapeo de {entity_type} para PMS ID '{pms_id}'")
