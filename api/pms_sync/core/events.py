"""
Manejadores de eventos de inicio y cierre de la aplicación.
"""
from typing import Callable
from fastapi import FastAPI
from loguru import logger

from pms_sync.api.v1.dependencies.use_case_deps import get_pms_adapter
from pms_sync.application.use_cases.pms_sync_use_cases import PmsSyncUseCases
from pms_sync.core.config import settings
from pms_sync.core.scheduler import create_sync_scheduler
from pms_sync.infrastructure.database.session import init_db, close_db


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asíncrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicación."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            _validate_config()

            # Inicializar base de datos (crea tablas si no existen)
            await init_db()
            logger.info("Base de datos inicializada")

            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            app.state.scheduler = None
            if settings.PMS_SYNC_SCHEDULER_ENABLED:
                use_cases = PmsSyncUseCases(get_pms_adapter())
                scheduler = create_sync_scheduler(use_cases)
                scheduler.start()
                app.state.scheduler = scheduler
                logger.info(
                    f"Scheduler de sincronización iniciado (cada {settings.PMS_SYNC_INTERVAL_MINUTES} min)"
                )

            logger.success("Aplicación iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuración crítica esté presente."""
    warnings = []

    if not settings.is_pms_configured:
        warnings.append(
            "OPENDENTAL_DEV_KEY / OPENDENTAL_CUSTOMER_KEY no configuradas - la sincronización no hará nada"
        )

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asíncrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicación."""
        logger.info("Cerrando aplicación...")

        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler de sincronización detenido")

        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicación cerrada correctamente")

    return shutdown
