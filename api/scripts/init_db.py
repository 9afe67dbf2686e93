"""
Script para inicializar la base de datos (crea las tablas si no existen).

Para entornos gestionados con migraciones usar `alembic upgrade head`.
"""
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))
load_dotenv(_API_ROOT / ".env", override=False)

import pms_sync.infrastructure.database  # noqa: E402,F401  registra modelos
from pms_sync.infrastructure.database.session import init_db, close_db  # noqa: E402


async def main():
    """Función principal para inicializar la base de datos."""
    logger.info("Inicializando base de datos...")

    try:
        await init_db()
        logger.success("Base de datos inicializada correctamente")
    except Exception as e:
        logger.error(f"Error al inicializar base de datos: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
