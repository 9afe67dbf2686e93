"""
Interfaz del adapter PMS.

Este contrato existe para:
- Que los workers de sync no dependan del protocolo del PMS.
- Facilitar tests con un adapter fake en memoria.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

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


class PmsAdapter(Protocol):
    """
    Lectura/escritura tipada contra un PMS externo.

    Reglas:
    - `since=None` significa "historial completo".
    - Los fallos de red / API se lanzan como excepción; nunca se devuelven
      datos de relleno.
    """

    pms_source: str

    def is_configured(self) -> bool:
        """True si hay credenciales para hablar con el PMS."""

    async def fetch_patients(self, since: Optional[datetime] = None) -> List[PmsPatient]: ...

    async def fetch_appointments(self, since: Optional[datetime] = None) -> List[PmsAppointment]: ...

    async def fetch_insurance_plans(self, since: Optional[datetime] = None) -> List[PmsInsurancePlan]: ...

    async def fetch_insurance_subscriptions(
        self, since: Optional[datetime] = None
    ) -> List[PmsInsuranceSubscription]: ...

    async def fetch_procedures(self, since: Optional[datetime] = None) -> List[PmsProcedure]: ...

    async def fetch_procedure_codes(self, since: Optional[datetime] = None) -> List[PmsProcedureCode]: ...

    async def fetch_providers(self, since: Optional[datetime] = None) -> List[PmsProvider]: ...

    async def fetch_operatories(self, since: Optional[datetime] = None) -> List[PmsOperatory]: ...

    async def fetch_family_members(self, patient_pms_id: str) -> PmsFamily:
        """Grupo familiar de cualquier miembro; el primer miembro es el garante."""

    async def push_patient(self, patient: OutboundPatient) -> str:
        """Crea el paciente en el PMS y retorna su id externo."""
