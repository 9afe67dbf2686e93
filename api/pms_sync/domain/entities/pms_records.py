"""
Registros tipados que entrega un adapter PMS.

Son inmutables y libres de I/O: el adapter traduce el formato del PMS a estos
registros y los workers solo trabajan con ellos.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class PmsPatient:
    pms_id: str
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    dob: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile_phone: Optional[str] = None
    work_phone: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    gender: Optional[str] = None
    modified_at: Optional[datetime] = None

    def address(self) -> Optional[dict]:
        """Dirección plana {street, city, state, zip}, o None si no hay datos."""
        parts = {"street": self.street, "city": self.city, "state": self.state, "zip": self.zip}
        if not any(parts.values()):
            return None
        return {k: v or "" for k, v in parts.items()}


@dataclass(frozen=True)
class PmsAppointment:
    pms_id: str
    patient_pms_id: str
    start_time: datetime
    end_time: datetime
    status: str
    provider: Optional[str] = None
    operatory: Optional[str] = None
    notes: Optional[str] = None
    procedures: Tuple[str, ...] = ()
    modified_at: Optional[datetime] = None


@dataclass(frozen=True)
class PmsInsurancePlan:
    pms_id: str
    carrier_name: str = ""
    payer_id: Optional[str] = None
    group_name: Optional[str] = None
    group_number: Optional[str] = None
    plan_type: Optional[str] = None


@dataclass(frozen=True)
class PmsInsuranceSubscription:
    pms_id: str
    patient_pms_id: str
    subscriber_pms_id: str
    plan_pms_id: str
    subscriber_id: str = ""
    date_effective: Optional[date] = None
    date_terminated: Optional[date] = None
    relationship: Optional[str] = None


@dataclass(frozen=True)
class PmsProcedure:
    """Entrada de procedurelog. Solo los 'completed' se facturan."""

    pms_id: str
    patient_pms_id: str
    code_num: str
    proc_status: str
    proc_code: Optional[str] = None
    appointment_pms_id: Optional[str] = None
    description: str = ""
    proc_date: Optional[date] = None
    tooth_number: Optional[str] = None
    surface: Optional[str] = None
    fee: float = 0.0
    provider_pms_id: Optional[str] = None
    diag_code: Optional[str] = None
    note: Optional[str] = None
    date_complete: Optional[date] = None


@dataclass(frozen=True)
class PmsProcedureCode:
    code: str
    code_num: Optional[str] = None
    description: str = ""
    abbreviation: Optional[str] = None
    proc_time: Optional[str] = None
    default_fee: Optional[float] = None
    category: Optional[str] = None
    is_hygiene: bool = False

    @property
    def pms_id(self) -> str:
        # CodeNum es el id interno del PMS; el código CDT solo como respaldo
        return self.code_num or self.code


@dataclass(frozen=True)
class PmsProvider:
    pms_id: str
    first_name: str = ""
    last_name: str = ""
    abbr: Optional[str] = None
    suffix: Optional[str] = None
    npi: Optional[str] = None
    state_license: Optional[str] = None
    specialty: Optional[str] = None
    is_hidden: bool = False


@dataclass(frozen=True)
class PmsOperatory:
    pms_id: str
    name: str = ""
    abbrev: Optional[str] = None
    is_hidden: bool = False
    is_hygiene: bool = False
    item_order: Optional[int] = None


@dataclass(frozen=True)
class PmsFamily:
    """Grupo familiar resuelto a partir de cualquier miembro."""

    guarantor_pms_id: str
    member_pms_ids: Tuple[str, ...] = field(default_factory=tuple)
    total_balance: float = 0.0


@dataclass(frozen=True)
class OutboundPatient:
    """Paciente interno a empujar al PMS."""

    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    dob: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile_phone: Optional[str] = None
    work_phone: Optional[str] = None
    address: Optional[dict] = None
    gender: Optional[str] = None
