"""
Reconciliación de registros normalizados contra el store local.

Reglas:
- UPSERT por clave natural, en el orden de la respuesta upstream.
- Clasificación observada: tras escribir, si created_at == updated_at es
  "insert", si no "update". Dos escrituras en el mismo tick del reloj se
  ven como insert (aproximación conocida).
- Continue-on-error: un fallo se acumula como RecordError y se sigue.
"""

from __future__ import annotations

from typing import Iterable

from loguru import logger

from folkets_storting.domain.repositories.sync_repositories import IEntityStore
from folkets_storting.shared.exceptions.sync import RecordError

from .sync_config import SyncSource
from .types import CanonicalRecord, ReconcileResult


class Reconciler:
    def __init__(self, store: IEntityStore) -> None:
        self._store = store

    async def reconcile(self, source: SyncSource, records: Iterable[CanonicalRecord]) -> ReconcileResult:
        result = ReconcileResult()

        for index, record in enumerate(records):
            try:
                stored = await self._store.upsert(
                    source.target_table,
                    source.external_id_column,
                    record,
                )
            except Exception as e:
                error = RecordError(
                    external_id=record.external_id,
                    index=index,
                    message=f"{type(e).__name__}: {e}"[:500],
                )
                result.errors.append(error)
                logger.warning(
                    f"[{source.name}] Registro #{index} ({record.external_id}) no se pudo escribir: {error.message}"
                )
                continue

            if stored.is_insert:
                result.inserted += 1
            else:
                result.updated += 1

        return result
