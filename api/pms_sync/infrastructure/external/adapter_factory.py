"""
Selección del adapter PMS según configuración.
"""
from typing import Optional

from pms_sync.application.interfaces.pms_adapter import PmsAdapter
from pms_sync.core.config import Settings, settings as default_settings
from pms_sync.infrastructure.external.open_dental.adapter import OPEN_DENTAL_SOURCE, OpenDentalAdapter


def build_pms_adapter(config: Optional[Settings] = None) -> PmsAdapter:
    """
    Construye el adapter configurado en PMS_SOURCE.

    Raises:
        ValueError: Si PMS_SOURCE no corresponde a un adapter conocido
    """
    config = config or default_settings
    if config.PMS_SOURCE == OPEN_DENTAL_SOURCE:
        return OpenDentalAdapter(config=config)
    raise ValueError(f"PMS_SOURCE no soportado: {config.PMS_SOURCE}")
