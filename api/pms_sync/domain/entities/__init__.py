"""
Entidades del dominio.
"""
from pms_sync.domain.entities.sync_result import RecordOutcome, SyncResult
from pms_sync.domain.entities.pms_records import (
    OutboundPatient,
    PmsAppointment,
    PmsFamily,
    PmsInsurancePlan,
    PmsInsuranceSubscription,
    PmsOperatory,
    PmsPatient,
    PmsProcedure,
    PmsProcedureCode,
    PmsProvider,
)

__all__ = [
    "RecordOutcome",
    "SyncResult",
    "OutboundPatient",
    "PmsAppointment",
    "PmsFamily",
    "PmsInsurancePlan",
    "PmsInsuranceSubscription",
    "PmsOperatory",
    "PmsPatient",
    "PmsProcedure",
    "PmsProcedureCode",
    "PmsProvider",
]
