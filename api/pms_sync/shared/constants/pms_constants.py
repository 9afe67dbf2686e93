"""
Constantes del dominio de sincronización PMS.
"""
from enum import Enum


class EntityType(str, Enum):
    """Tipos de entidad sincronizados (clave de watermark, mapeo y lease)."""
    PROCEDURE_CODE = "procedure_code"
    PROVIDER = "provider"
    OPERATORY = "operatory"
    PATIENT = "patient"
    FAMILY = "family"
    APPOINTMENT = "appointment"
    INSURANCE_POLICY = "insurance_policy"
    PROCEDURE = "procedure"


class TenantStatus(str, Enum):
    """Ciclo de vida de un tenant."""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class SyncStatus(str, Enum):
    """Estado final de una etapa de sincronización."""
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_RUN = "not_run"


class AppointmentStatus(str, Enum):
    """Vocabulario interno de estados de cita."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class SubscriberRelation(str, Enum):
    """Relación paciente-suscriptor de una póliza."""
    SELF = "self"
    SPOUSE = "spouse"
    CHILD = "child"
    OTHER = "other"


class ProcedureCategory(str, Enum):
    """Categorías CDT."""
    DIAGNOSTIC = "diagnostic"
    PREVENTIVE = "preventive"
    RESTORATIVE = "restorative"
    ENDODONTICS = "endodontics"
    PERIODONTICS = "periodontics"
    PROSTHODONTICS_REMOVABLE = "prosthodontics_removable"
    PROSTHODONTICS_FIXED = "prosthodontics_fixed"
    ORAL_SURGERY = "oral_surgery"
    ORTHODONTICS = "orthodontics"
    ADJUNCTIVE = "adjunctive"


class ProviderSpecialty(str, Enum):
    """Especialidades de proveedor."""
    GENERAL_DENTIST = "general_dentist"
    ORTHODONTIST = "orthodontist"
    PERIODONTIST = "periodontist"
    ENDODONTIST = "endodontist"
    ORAL_SURGEON = "oral_surgeon"
    PEDIATRIC_DENTIST = "pediatric_dentist"
    PROSTHODONTIST = "prosthodontist"
    HYGIENIST = "hygienist"


# Orden de dependencias de un full sync: cada etapa referencia
# identidades creadas por etapas anteriores.
FULL_SYNC_ORDER = (
    EntityType.PROCEDURE_CODE,
    EntityType.PROVIDER,
    EntityType.OPERATORY,
    EntityType.PATIENT,
    EntityType.FAMILY,
    EntityType.APPOINTMENT,
    EntityType.INSURANCE_POLICY,
    EntityType.PROCEDURE,
)

# Alias aceptados por trigger_sync
ENTITY_TYPE_ALIASES = {
    "procedure_code": EntityType.PROCEDURE_CODE,
    "cdt_code": EntityType.PROCEDURE_CODE,
    "provider": EntityType.PROVIDER,
    "operatory": EntityType.OPERATORY,
    "patient": EntityType.PATIENT,
    "family": EntityType.FAMILY,
    "families": EntityType.FAMILY,
    "appointment": EntityType.APPOINTMENT,
    "insurance": EntityType.INSURANCE_POLICY,
    "insurance_policy": EntityType.INSURANCE_POLICY,
    "procedure": EntityType.PROCEDURE,
    "completed_procedure": EntityType.PROCEDURE,
}

PROCEDURE_STATUS_COMPLETED = "completed"
MAPPING_STATUS_SYNCED = "synced"
