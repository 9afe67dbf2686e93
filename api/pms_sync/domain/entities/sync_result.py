"""
Entidad de dominio: resultado de una etapa de sincronización.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pms_sync.shared.constants.pms_constants import SyncStatus


class RecordOutcome(str, Enum):
    """Qué pasó con un registro individual."""
    CREATED = "created"
    UPDATED = "updated"
    IGNORED = "ignored"


@dataclass
class SyncResult:
    """
    Contadores de una corrida de un worker.

    `skipped` cuenta brechas de dependencia (el padre aún no está mapeado);
    `errors` cuenta registros que fallaron y se revirtieron.
    """

    created: int = 0
    updated: int = 0
    errors: int = 0
    skipped: int = 0
    status: SyncStatus = SyncStatus.COMPLETED
    error: Optional[str] = None

    def record(self, outcome: RecordOutcome) -> None:
        if outcome == RecordOutcome.CREATED:
            self.created += 1
        elif outcome == RecordOutcome.UPDATED:
            self.updated += 1

    @property
    def processed(self) -> int:
        return self.created + self.updated

    @classmethod
    def failed(cls, error: str) -> "SyncResult":
        return cls(status=SyncStatus.FAILED, error=error)

    @classmethod
    def not_run(cls) -> "SyncResult":
        return cls(status=SyncStatus.NOT_RUN)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "created": self.created,
            "updated": self.updated,
            "errors": self.errors,
            "skipped": self.skipped,
            "status": self.status.value,
        }
        if self.error:
            data["error"] = self.error
        return data
