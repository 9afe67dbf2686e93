"""
Scheduler del barrido periódico de sincronización PMS.
"""
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from pms_sync.application.use_cases.pms_sync_use_cases import PmsSyncUseCases
from pms_sync.core.config import Settings, settings as default_settings

SCHEDULED_SYNC_JOB_ID = "pms_scheduled_sync"


async def run_scheduled_sync(use_cases: PmsSyncUseCases) -> None:
    """Job del scheduler; los errores se registran y no detienen el scheduler."""
    try:
        await use_cases.scheduled_sync()
    except Exception as e:
        logger.error(f"[scheduler] Barrido de sincronización falló: {e}")


def create_sync_scheduler(use_cases: PmsSyncUseCases, config: Optional[Settings] = None) -> AsyncIOScheduler:
    """
    Crea el scheduler con el job de sincronización registrado (sin iniciarlo).

    max_instances=1 evita que un barrido lento se solape con el siguiente.
    """
    config = config or default_settings
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        run_scheduled_sync,
        trigger=IntervalTrigger(minutes=config.PMS_SYNC_INTERVAL_MINUTES),
        args=[use_cases],
        id=SCHEDULED_SYNC_JOB_ID,
        name="PMS scheduled sync",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
