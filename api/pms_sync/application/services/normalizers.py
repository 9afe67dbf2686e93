"""
Tablas de normalización PMS -> vocabulario interno.

Cada clasificación es una tabla ordenada de (predicado, valor): gana la
primera regla que coincide y existe un valor de respaldo explícito. Así el
orden de evaluación es visible y testeable sin tocar la base de datos.
"""
from __future__ import annotations

import re
from typing import Callable, Dict, FrozenSet, Optional, Sequence, Tuple

from pms_sync.shared.constants.pms_constants import (
    AppointmentStatus,
    ProcedureCategory,
    ProviderSpecialty,
    SubscriberRelation,
)
from pms_sync.shared.exceptions.domain import InvalidStatusTransitionException, ValidationException

Predicate = Callable[[str], bool]


def _contains(*needles: str) -> Predicate:
    return lambda text: all(n in text for n in needles)


def _first_match(table: Sequence[Tuple[Predicate, str]], raw: Optional[str], fallback: str) -> str:
    if not raw:
        return fallback
    text = str(raw).strip().lower()
    for predicate, value in table:
        if predicate(text):
            return value
    return fallback


# ---------------------------------------------------------------------------
# Categoría CDT
# ---------------------------------------------------------------------------

# "prostho" + "remov" debe evaluarse antes que "prostho" a secas
CATEGORY_RULES: Tuple[Tuple[Predicate, str], ...] = (
    (_contains("diagn"), ProcedureCategory.DIAGNOSTIC.value),
    (_contains("prevent"), ProcedureCategory.PREVENTIVE.value),
    (_contains("restor"), ProcedureCategory.RESTORATIVE.value),
    (_contains("endo"), ProcedureCategory.ENDODONTICS.value),
    (_contains("perio"), ProcedureCategory.PERIODONTICS.value),
    (_contains("prostho", "remov"), ProcedureCategory.PROSTHODONTICS_REMOVABLE.value),
    (_contains("prostho"), ProcedureCategory.PROSTHODONTICS_FIXED.value),
    (_contains("surg"), ProcedureCategory.ORAL_SURGERY.value),
    (_contains("ortho"), ProcedureCategory.ORTHODONTICS.value),
)


def infer_procedure_category(raw_category: Optional[str]) -> str:
    """Categoría CDT a partir del texto de categoría del PMS (fallback adjunctive)."""
    return _first_match(CATEGORY_RULES, raw_category, ProcedureCategory.ADJUNCTIVE.value)


# ---------------------------------------------------------------------------
# Especialidad de proveedor
# ---------------------------------------------------------------------------

SPECIALTY_RULES: Tuple[Tuple[Predicate, str], ...] = (
    (_contains("ortho"), ProviderSpecialty.ORTHODONTIST.value),
    (_contains("perio"), ProviderSpecialty.PERIODONTIST.value),
    (_contains("endo"), ProviderSpecialty.ENDODONTIST.value),
    (_contains("surg"), ProviderSpecialty.ORAL_SURGEON.value),
    (_contains("pedo"), ProviderSpecialty.PEDIATRIC_DENTIST.value),
    (_contains("pediatric"), ProviderSpecialty.PEDIATRIC_DENTIST.value),
    (_contains("prostho"), ProviderSpecialty.PROSTHODONTIST.value),
    (_contains("hyg"), ProviderSpecialty.HYGIENIST.value),
)


def infer_provider_specialty(raw_specialty: Optional[str]) -> str:
    """Especialidad interna (fallback general_dentist)."""
    return _first_match(SPECIALTY_RULES, raw_specialty, ProviderSpecialty.GENERAL_DENTIST.value)


# ---------------------------------------------------------------------------
# Duración de procedimiento
# ---------------------------------------------------------------------------

MINUTES_PER_PATTERN_SLOT = 5

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{1,2})(?::\d{1,2})?$")
_PATTERN_RE = re.compile(r"^[/X|]+$", re.IGNORECASE)
_MINUTES_RE = re.compile(r"^\d+$")


def _parse_clock(text: str) -> Optional[int]:
    match = _CLOCK_RE.match(text)
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def _parse_pattern(text: str) -> Optional[int]:
    # Patron de Open Dental: cada carácter es un bloque de 5 minutos
    if not _PATTERN_RE.match(text):
        return None
    return len(text) * MINUTES_PER_PATTERN_SLOT


def _parse_minutes(text: str) -> Optional[int]:
    if not _MINUTES_RE.match(text):
        return None
    return int(text)


DURATION_PARSERS: Tuple[Callable[[str], Optional[int]], ...] = (
    _parse_clock,
    _parse_pattern,
    _parse_minutes,
)


def parse_procedure_duration(raw: Optional[str]) -> Optional[int]:
    """Duración en minutos, o None si ningún parser reconoce el formato."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    for parser in DURATION_PARSERS:
        minutes = parser(text)
        if minutes is not None:
            return minutes
    return None


# ---------------------------------------------------------------------------
# Relación suscriptor
# ---------------------------------------------------------------------------

RELATION_TABLE: Dict[str, str] = {
    "self": SubscriberRelation.SELF.value,
    "spouse": SubscriberRelation.SPOUSE.value,
    "child": SubscriberRelation.CHILD.value,
    "dependent": SubscriberRelation.CHILD.value,
    "employee": SubscriberRelation.SELF.value,
}


def map_subscriber_relation(raw: Optional[str]) -> str:
    """None -> self; valores no tabulados -> other."""
    if raw is None:
        return SubscriberRelation.SELF.value
    return RELATION_TABLE.get(str(raw).strip().lower(), SubscriberRelation.OTHER.value)


# ---------------------------------------------------------------------------
# Estados de cita
# ---------------------------------------------------------------------------

APPOINTMENT_STATUSES: FrozenSet[str] = frozenset(s.value for s in AppointmentStatus)

# Estados terminales y sus destinos permitidos; el resto admite cualquier destino
APPOINTMENT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    AppointmentStatus.COMPLETED.value: frozenset({AppointmentStatus.COMPLETED.value}),
    AppointmentStatus.CANCELLED.value: frozenset({
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.SCHEDULED.value,
        AppointmentStatus.CONFIRMED.value,
    }),
    AppointmentStatus.NO_SHOW.value: frozenset({
        AppointmentStatus.NO_SHOW.value,
        AppointmentStatus.SCHEDULED.value,
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.CANCELLED.value,
    }),
}


def validate_appointment_status(status: str) -> str:
    """Rechaza estados fuera del vocabulario interno."""
    if status not in APPOINTMENT_STATUSES:
        raise ValidationException(f"Estado de cita desconocido: {status}", field="status")
    return status


def check_appointment_transition(current: Optional[str], target: str) -> None:
    """Lanza InvalidStatusTransitionException si la tabla no permite current -> target."""
    validate_appointment_status(target)
    if current is None:
        return
    allowed = APPOINTMENT_TRANSITIONS.get(current)
    if allowed is not None and target not in allowed:
        raise InvalidStatusTransitionException("Appointment", current, target)
