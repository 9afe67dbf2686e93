"""
Utilidades puras para fechas del pipeline PMS -> base interna.

Sin I/O para poder testearlas fácilmente.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

# Open Dental usa 0001-01-01 como "sin fecha"
_PMS_EMPTY_DATE_PREFIX = "0001-01-01"


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    SQLite devuelve datetimes naive aunque la columna sea timezone=True;
    los tratamos como UTC para comparar de forma consistente.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_pms_date(raw: Any) -> Optional[date]:
    """
    Parsea una fecha del PMS ("1980-05-15", "1980-05-15 00:00:00").

    Retorna None para vacíos y para la fecha centinela 0001-01-01.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()
    if not text or text.startswith(_PMS_EMPTY_DATE_PREFIX):
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_pms_datetime(raw: Any) -> Optional[datetime]:
    """
    Parsea un datetime del PMS ("2024-01-15 09:00:00" o ISO con 'T'/'Z').

    Los valores sin zona se mantienen naive: son hora local de la clínica.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    text = str(raw).strip()
    if not text or text.startswith(_PMS_EMPTY_DATE_PREFIX):
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_pms_timestamp(dt: datetime) -> str:
    """Formato DateTStamp de Open Dental: yyyy-MM-dd HH:mm:ss (UTC)."""
    return ensure_utc(dt).strftime("%Y-%m-%d %H:%M:%S")


def format_pms_date(dt: datetime) -> str:
    """Formato de fecha simple aceptado por Open Dental: yyyy-MM-dd."""
    return ensure_utc(dt).strftime("%Y-%m-%d")
