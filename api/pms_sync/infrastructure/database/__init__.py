"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from pms_sync.infrastructure.database.models import (
    TenantModel,
    PatientModel,
    FamilyModel,
    AppointmentModel,
    InsurancePolicyModel,
    CompletedProcedureModel,
    ProviderModel,
    OperatoryModel,
    ProcedureCodeModel,
    PmsMappingModel,
    SyncWatermarkModel,
    SyncLeaseModel,
)
