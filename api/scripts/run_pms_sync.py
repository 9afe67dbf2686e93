"""
CLI: sincronización PMS -> base interna.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) cuando el scheduler del API está
    deshabilitado (PMS_SYNC_SCHEDULER_ENABLED=false).

Ejecución:
  python scripts/run_pms_sync.py --tenant <id>                 # full sync
  python scripts/run_pms_sync.py --tenant <id> --entity patient
  python scripts/run_pms_sync.py --all-tenants                 # barrido programado
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from pms_sync.application.use_cases.pms_sync_use_cases import PmsSyncUseCases  # noqa: E402
from pms_sync.domain.entities.sync_result import SyncResult  # noqa: E402
from pms_sync.infrastructure.database.session import close_db  # noqa: E402
from pms_sync.infrastructure.external.adapter_factory import build_pms_adapter  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sincronización PMS -> base interna")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--tenant", help="ID del tenant a sincronizar")
    target.add_argument("--all-tenants", action="store_true", help="Full sync de todos los tenants activos")
    parser.add_argument("--entity", help="Solo este tipo de entidad (acepta alias, requiere --tenant)")
    args = parser.parse_args(argv)
    if args.entity and not args.tenant:
        parser.error("--entity requiere --tenant")
    return args


async def _run(args: argparse.Namespace) -> int:
    use_cases = PmsSyncUseCases(build_pms_adapter())
    if not use_cases.is_configured():
        logger.warning("PMS no configurado (OPENDENTAL_DEV_KEY / OPENDENTAL_CUSTOMER_KEY); nada que hacer")

    try:
        if args.all_tenants:
            summary = await use_cases.scheduled_sync()
            logger.info(f"Resultado: {json.dumps(summary)}")
            return 1 if summary["failed"] else 0

        if args.entity:
            result = await use_cases.trigger_sync(args.tenant, args.entity)
            payload = result.to_dict() if isinstance(result, SyncResult) else result
            logger.info(f"Resultado: {json.dumps(payload)}")
            return 0 if isinstance(result, SyncResult) else 2

        results = await use_cases.full_sync(args.tenant)
        logger.info(f"Resultado: {json.dumps({k: v.to_dict() for k, v in results.items()}, indent=2)}")
        failed = any(r.status.value == "failed" for r in results.values())
        return 1 if failed else 0
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except Exception as e:
        logger.error(f"Sincronización falló: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
