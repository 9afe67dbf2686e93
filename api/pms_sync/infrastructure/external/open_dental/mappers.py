"""
Mapeo de payloads JSON de Open Dental a registros PMS tipados.

Funciones puras: reciben el dict crudo de la API y devuelven un registro
inmutable. Los códigos numéricos de Open Dental se traducen con tablas
explícitas.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

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
from pms_sync.shared.constants.pms_constants import AppointmentStatus
from pms_sync.shared.utils.datetime_utils import parse_pms_date, parse_pms_datetime

# AptStatus
APPOINTMENT_STATUS_MAP: Dict[int, str] = {
    1: AppointmentStatus.SCHEDULED.value,
    2: AppointmentStatus.COMPLETED.value,
    3: AppointmentStatus.SCHEDULED.value,  # unscheduled
    5: AppointmentStatus.CANCELLED.value,
    6: AppointmentStatus.NO_SHOW.value,  # broken
}

# ProcStatus
PROCEDURE_STATUS_MAP: Dict[int, str] = {
    1: "treatment_planned",
    2: "completed",
    3: "existing_current",
    4: "existing_other",
    5: "referred_out",
    6: "deleted",
    7: "condition",
    8: "estimate",
}

GENDER_MAP: Dict[int, str] = {0: "male", 1: "female", 2: "unknown"}
GENDER_TO_OD: Dict[str, int] = {"male": 0, "female": 1, "unknown": 2, "other": 2}

# Relationship de inssub
RELATIONSHIP_MAP: Dict[int, str] = {
    0: "self",
    1: "spouse",
    2: "child",
    3: "employee",
    4: "handicapped_dependent",
    5: "significant_other",
    6: "injured_plaintiff",
    7: "life_partner",
    8: "dependent",
}

MINUTES_PER_APPOINTMENT_SLOT = 5
ENTIRE_FAMILY_ROW = "Entire Family"


def _id(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _opt_id(value: Any) -> Optional[str]:
    # Open Dental usa 0 como "sin referencia"
    text = _id(value)
    if not text or text == "0":
        return None
    return text


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def map_patient(raw: Mapping[str, Any]) -> PmsPatient:
    return PmsPatient(
        pms_id=_id(raw.get("PatNum")),
        first_name=raw.get("FName") or "",
        last_name=raw.get("LName") or "",
        middle_name=_text(raw.get("MiddleI")),
        dob=parse_pms_date(raw.get("Birthdate")),
        email=_text(raw.get("Email")),
        phone=_text(raw.get("HmPhone")),
        mobile_phone=_text(raw.get("WirelessPhone")),
        work_phone=_text(raw.get("WkPhone")),
        street=_text(raw.get("Address")),
        city=_text(raw.get("City")),
        state=_text(raw.get("State")),
        zip=_text(raw.get("Zip")),
        gender=GENDER_MAP.get(_int(raw.get("Gender"))),
        modified_at=parse_pms_datetime(raw.get("DateTStamp")),
    )


def map_appointment(raw: Mapping[str, Any]) -> PmsAppointment:
    """
    Raises:
        ValueError: Si AptDateTime no es parseable
    """
    start = parse_pms_datetime(raw.get("AptDateTime"))
    if start is None:
        raise ValueError(f"AptDateTime inválido en cita {raw.get('AptNum')}: {raw.get('AptDateTime')!r}")
    slots = len(raw.get("Pattern") or "") or 1
    procedures = (raw.get("ProcDescript"),) if raw.get("ProcDescript") else ()

    return PmsAppointment(
        pms_id=_id(raw.get("AptNum")),
        patient_pms_id=_id(raw.get("PatNum")),
        start_time=start,
        end_time=start + timedelta(minutes=slots * MINUTES_PER_APPOINTMENT_SLOT),
        status=APPOINTMENT_STATUS_MAP.get(_int(raw.get("AptStatus")), AppointmentStatus.SCHEDULED.value),
        provider=_text(raw.get("provAbbr")) or _opt_id(raw.get("ProvNum")),
        operatory=_opt_id(raw.get("Op")),
        notes=_text(raw.get("Note")),
        procedures=procedures,
        modified_at=parse_pms_datetime(raw.get("DateTStamp")),
    )


def map_insurance_plan(raw: Mapping[str, Any], carriers: Mapping[str, str]) -> PmsInsurancePlan:
    carrier_num = _id(raw.get("CarrierNum"))
    return PmsInsurancePlan(
        pms_id=_id(raw.get("PlanNum")),
        carrier_name=carriers.get(carrier_num) or raw.get("CarrierName") or "",
        payer_id=_text(raw.get("ElectID")),
        group_name=_text(raw.get("GroupName")),
        group_number=_text(raw.get("GroupNum")),
        plan_type=_text(raw.get("PlanType")),
    )


def map_insurance_subscription(raw: Mapping[str, Any]) -> PmsInsuranceSubscription:
    # /inssubs no expone PatNum; Subscriber es el titular de la póliza
    subscriber = _id(raw.get("Subscriber"))
    relationship_code = _int(raw.get("Relationship"))
    relationship = None
    if relationship_code is not None:
        relationship = RELATIONSHIP_MAP.get(relationship_code, "other")

    return PmsInsuranceSubscription(
        pms_id=_id(raw.get("InsSubNum")),
        patient_pms_id=subscriber,
        subscriber_pms_id=subscriber,
        plan_pms_id=_id(raw.get("PlanNum")),
        subscriber_id=raw.get("SubscriberID") or "",
        date_effective=parse_pms_date(raw.get("DateEffective")),
        date_terminated=parse_pms_date(raw.get("DateTerm")),
        relationship=relationship,
    )


def map_procedure(raw: Mapping[str, Any]) -> PmsProcedure:
    return PmsProcedure(
        pms_id=_id(raw.get("ProcNum")),
        patient_pms_id=_id(raw.get("PatNum")),
        code_num=_id(raw.get("CodeNum")),
        proc_code=_text(raw.get("procCode")),
        proc_status=PROCEDURE_STATUS_MAP.get(_int(raw.get("ProcStatus")), "treatment_planned"),
        appointment_pms_id=_opt_id(raw.get("AptNum")),
        description=raw.get("ProcDescript") or raw.get("Descript") or "",
        proc_date=parse_pms_date(raw.get("ProcDate")),
        tooth_number=_text(raw.get("ToothNum")),
        surface=_text(raw.get("Surf")),
        fee=_float(raw.get("ProcFee")),
        provider_pms_id=_opt_id(raw.get("ProvNum")),
        diag_code=_text(raw.get("DiagnosticCode")),
        note=_text(raw.get("Note")),
        date_complete=parse_pms_date(raw.get("DateComplete")),
    )


def map_procedure_code(raw: Mapping[str, Any]) -> PmsProcedureCode:
    fee = raw.get("ProcFee")
    return PmsProcedureCode(
        code=raw.get("ProcCode") or "",
        code_num=_opt_id(raw.get("CodeNum")),
        description=raw.get("Descript") or "",
        abbreviation=_text(raw.get("AbbrDesc")),
        proc_time=_text(raw.get("ProcTime")),
        default_fee=_float(fee) if fee is not None else None,
        category=_text(raw.get("ProcCat")),
        is_hygiene=_bool(raw.get("IsHygiene")),
    )


def map_provider(raw: Mapping[str, Any]) -> PmsProvider:
    return PmsProvider(
        pms_id=_id(raw.get("ProvNum")),
        first_name=raw.get("FName") or "",
        last_name=raw.get("LName") or "",
        abbr=_text(raw.get("Abbr")),
        suffix=_text(raw.get("Suffix")),
        npi=_text(raw.get("NationalProvID")),
        state_license=_text(raw.get("StateLicense")),
        specialty=_text(raw.get("Specialty")),
        is_hidden=_bool(raw.get("IsHidden")),
    )


def map_operatory(raw: Mapping[str, Any]) -> PmsOperatory:
    return PmsOperatory(
        pms_id=_id(raw.get("OperatoryNum")),
        name=raw.get("OpName") or "",
        abbrev=_text(raw.get("Abbrev")),
        is_hidden=_bool(raw.get("IsHidden")),
        is_hygiene=_bool(raw.get("IsHygiene")),
        item_order=_int(raw.get("ItemOrder")),
    )


def map_family(rows: list, patient_pms_id: str) -> PmsFamily:
    """
    Respuesta de /accountmodules/{PatNum}/PatientBalances.

    La primera fila es el garante; la fila "Entire Family" trae el saldo
    agregado y no es un miembro.
    """
    if not rows:
        return PmsFamily(guarantor_pms_id=patient_pms_id, member_pms_ids=(patient_pms_id,))

    members = tuple(
        _id(row.get("PatNum"))
        for row in rows
        if row.get("Name") != ENTIRE_FAMILY_ROW and _id(row.get("PatNum"))
    )
    family_row = next((row for row in rows if row.get("Name") == ENTIRE_FAMILY_ROW), None)
    guarantor = _id(rows[0].get("PatNum")) or patient_pms_id

    return PmsFamily(
        guarantor_pms_id=guarantor,
        member_pms_ids=members,
        total_balance=_float(family_row.get("Balance")) if family_row else 0.0,
    )


def build_patient_payload(patient: OutboundPatient) -> Dict[str, Any]:
    """Cuerpo POST /patients."""
    address = patient.address or {}
    return {
        "FName": patient.first_name,
        "LName": patient.last_name,
        "MiddleI": patient.middle_name or "",
        "Birthdate": patient.dob.isoformat() if patient.dob else "",
        "Email": patient.email or "",
        "WirelessPhone": patient.mobile_phone or patient.phone or "",
        "HmPhone": patient.phone or "",
        "WkPhone": patient.work_phone or "",
        "Address": address.get("street") or "",
        "City": address.get("city") or "",
        "State": address.get("state") or "",
        "Zip": address.get("zip") or "",
        "Gender": GENDER_TO_OD.get((patient.gender or "").lower(), 2),
    }
