"""
CLI: API Stortinget -> base de datos local (one-way sync).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) cuando la API no corre con
    SYNC_ON_STARTUP, o para forzar una ronda manual.
  - Respeta el mismo watermark que la API: si la última ronda es más
    reciente que SYNC_INTERVAL_HOURS, no hace nada.

Variables de entorno relevantes:
  - DATABASE_URL (postgresql://..., postgres://... o sqlite+aiosqlite://...)
  - STORTINGET_API_BASE_URL
  - SYNC_INTERVAL_HOURS

Ejecución:
  python scripts/stortinget_sync.py
  python scripts/stortinget_sync.py --status
  python scripts/stortinget_sync.py --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `folkets_storting/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env si existe (antes de importar la configuración).
# - api/.env (recomendado para scripts del backend)
# - repo_root/.env (si centralizas variables del proyecto)
_REPO_ROOT = _API_ROOT.parent
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_REPO_ROOT / ".env", override=False)

from folkets_storting.core.config import settings
from folkets_storting.infrastructure.database.session import engine, init_db, close_db
from folkets_storting.infrastructure.external.stortinget_sync.sync_service import build_from_settings
from folkets_storting.infrastructure.external.stortinget_sync.types import SyncOutcome, SyncSkipped


async def _show_status() -> int:
    orchestrator = build_from_settings(settings, engine=engine)
    watermark = await orchestrator.get_watermark()
    if watermark is None:
        print("Nunca sincronizado: la próxima ejecución corre una ronda.")
        return 0
    print(f"Última ronda:  {watermark.last_sync_at.isoformat()}")
    print(f"Próxima ronda: {orchestrator.next_due_at(watermark).isoformat()}")
    return 0


async def _run(as_json: bool) -> int:
    orchestrator = build_from_settings(settings, engine=engine)

    logger.info("Iniciando sincronización Stortinget -> base de datos...")
    outcome = await orchestrator.maybe_sync()

    if isinstance(outcome, SyncSkipped):
        if as_json:
            print(json.dumps({"executed": False, "skipped_reason": outcome.reason}))
        else:
            print(f"Sync omitido ({outcome.reason}). Próxima ronda: {outcome.next_due_at}")
        return 0

    if as_json:
        print(json.dumps({"executed": True, "results": [r.to_dict() for r in outcome]}, indent=2))
    else:
        for result in outcome:
            print(f"{result.source:<16} {result.outcome.value:<9} {result.message}")

    # Código de salida != 0 si alguna fuente quedó rechazada (útil para cron).
    return 0 if all(r.outcome is SyncOutcome.SUCCESS for r in outcome) else 1


async def _main_async(args: argparse.Namespace) -> int:
    await init_db()
    try:
        if args.status:
            return await _show_status()
        return await _run(args.json)
    finally:
        await close_db()


def main() -> int:
    parser = argparse.ArgumentParser(description="Sincroniza datos de la API de Stortinget.")
    parser.add_argument(
        "--status",
        action="store_true",
        help="Solo muestra el watermark y la próxima ronda (no ejecuta sync).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Imprime el resultado como JSON.",
    )
    args = parser.parse_args()

    return asyncio.run(_main_async(args))


if __name__ == "__main__":
    raise SystemExit(main())
