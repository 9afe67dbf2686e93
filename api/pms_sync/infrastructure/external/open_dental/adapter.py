"""
Adapter PMS para Open Dental.

Traduce la API REST de Open Dental al contrato PmsAdapter. El cliente HTTP es
bloqueante (requests), por eso cada llamada corre en asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from loguru import logger

from pms_sync.core.config import Settings, settings as default_settings
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
from pms_sync.infrastructure.external.open_dental import mappers
from pms_sync.infrastructure.external.open_dental.client import OpenDentalClient, OpenDentalCredentials
from pms_sync.shared.exceptions.sync import PmsApiException, PmsNotConfiguredException
from pms_sync.shared.utils.datetime_utils import ensure_utc, format_pms_date, format_pms_timestamp

T = TypeVar("T")

OPEN_DENTAL_SOURCE = "open_dental"


def _map_all(rows: Iterable[Dict[str, Any]], mapper: Callable[[Dict[str, Any]], T], kind: str) -> List[T]:
    """Aplica el mapper; un registro con formato inválido se descarta con warning."""
    records: List[T] = []
    for row in rows:
        try:
            records.append(mapper(row))
        except ValueError as e:
            logger.warning(f"[open-dental] {kind} descartado: {e}")
    return records


class OpenDentalAdapter:
    """
    Implementación de PmsAdapter sobre OpenDentalClient.

    Notas sobre filtros incrementales:
    - /patients no acepta DateTStamp: se filtra del lado del cliente.
    - /appointments usa DateTStamp "yyyy-MM-dd HH:mm:ss".
    - /insplans y /procedurelogs usan DateTStamp con fecha.
    - Códigos, proveedores, operatorios y suscripciones se leen completos;
      la idempotencia la garantiza el mapeo de identidades.
    """

    pms_source = OPEN_DENTAL_SOURCE

    def __init__(self, client: Optional[OpenDentalClient] = None, config: Optional[Settings] = None):
        config = config or default_settings
        self._credentials = OpenDentalCredentials(
            developer_key=config.OPENDENTAL_DEV_KEY,
            customer_key=config.OPENDENTAL_CUSTOMER_KEY,
            auth_scheme=config.OPENDENTAL_AUTH_SCHEME,
        )
        self._client = client or OpenDentalClient(
            self._credentials,
            base_url=config.OPENDENTAL_BASE_URL,
            timeout_s=config.OPENDENTAL_TIMEOUT_SECONDS,
            max_retries=config.OPENDENTAL_MAX_RETRIES,
            page_size=config.OPENDENTAL_PAGE_SIZE,
        )

    def is_configured(self) -> bool:
        return self._credentials.is_complete

    async def _get_list(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._client.get_list, endpoint, params)

    async def fetch_patients(self, since: Optional[datetime] = None) -> List[PmsPatient]:
        logger.info(f"[open-dental] Leyendo pacientes{f' desde {since.isoformat()}' if since else ''}")
        patients = _map_all(await self._get_list("/patients"), mappers.map_patient, "paciente")
        if since is None:
            return patients

        since_utc = ensure_utc(since)
        # Sin DateTStamp no se puede descartar: se incluye
        filtered = [
            p for p in patients
            if p.modified_at is None or ensure_utc(p.modified_at) >= since_utc
        ]
        logger.debug(f"[open-dental] {len(filtered)}/{len(patients)} pacientes modificados desde {since_utc}")
        return filtered

    async def fetch_appointments(self, since: Optional[datetime] = None) -> List[PmsAppointment]:
        params = {"DateTStamp": format_pms_timestamp(since)} if since else None
        rows = await self._get_list("/appointments", params)
        return _map_all(rows, mappers.map_appointment, "cita")

    async def fetch_carriers(self) -> Dict[str, str]:
        """CarrierNum -> CarrierName. Si falla, los planes quedan sin nombre de aseguradora."""
        try:
            rows = await self._get_list("/carriers")
        except PmsApiException as e:
            logger.warning(f"[open-dental] No se pudieron leer aseguradoras: {e.message}")
            return {}
        return {str(r.get("CarrierNum")): r.get("CarrierName") or "" for r in rows if r.get("CarrierNum")}

    async def fetch_insurance_plans(self, since: Optional[datetime] = None) -> List[PmsInsurancePlan]:
        carriers = await self.fetch_carriers()
        params = {"DateTStamp": format_pms_date(since)} if since else None
        rows = await self._get_list("/insplans", params)
        return _map_all(rows, lambda r: mappers.map_insurance_plan(r, carriers), "plan")

    async def fetch_insurance_subscriptions(
        self, since: Optional[datetime] = None
    ) -> List[PmsInsuranceSubscription]:
        rows = await self._get_list("/inssubs")
        return _map_all(rows, mappers.map_insurance_subscription, "suscripción")

    async def fetch_procedures(self, since: Optional[datetime] = None) -> List[PmsProcedure]:
        params = {"DateTStamp": format_pms_date(since)} if since else None
        rows = await self._get_list("/procedurelogs", params)
        return _map_all(rows, mappers.map_procedure, "procedimiento")

    async def fetch_procedure_codes(self, since: Optional[datetime] = None) -> List[PmsProcedureCode]:
        return _map_all(await self._get_list("/procedurecodes"), mappers.map_procedure_code, "código")

    async def fetch_providers(self, since: Optional[datetime] = None) -> List[PmsProvider]:
        return _map_all(await self._get_list("/providers"), mappers.map_provider, "proveedor")

    async def fetch_operatories(self, since: Optional[datetime] = None) -> List[PmsOperatory]:
        return _map_all(await self._get_list("/operatories"), mappers.map_operatory, "operatorio")

    async def fetch_family_members(self, patient_pms_id: str) -> PmsFamily:
        rows = await asyncio.to_thread(
            self._client.get_json, f"/accountmodules/{patient_pms_id}/PatientBalances"
        )
        return mappers.map_family(rows or [], patient_pms_id)

    async def push_patient(self, patient: OutboundPatient) -> str:
        if not self.is_configured():
            raise PmsNotConfiguredException(self.pms_source)

        logger.info(f"[open-dental] Creando paciente {patient.first_name} {patient.last_name}")
        data = await asyncio.to_thread(
            self._client.post_json, "/patients", mappers.build_patient_payload(patient)
        )
        pat_num = (data or {}).get("PatNum")
        if not pat_num:
            raise PmsApiException("Open Dental no devolvió PatNum al crear paciente", endpoint="/patients")
        return str(pat_num)
