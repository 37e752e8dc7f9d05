"""
Servicio de sincronización Stortinget -> base de datos local.

Diseño (resumen):
- Lee el watermark (última ronda completada) y decide si toca sincronizar
- Lanza todas las fuentes en paralelo (asyncio) con semántica settle-all
- Por fuente: fetch (1 GET) -> normalize -> reconcile (UPSERT por stortinget_id)
- Avanza el watermark al inicio de la ronda, aunque alguna fuente falle

Estrategia ante fallos:
- Una fuente caída queda como REJECTED y se reintenta en el próximo intervalo.
- Nada de este módulo es fatal para el proceso host.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from folkets_storting.core.config import Settings
from folkets_storting.domain.repositories.sync_repositories import IWatermarkStore
from folkets_storting.shared.exceptions.sync import (
    DecodeError,
    SyncConfigError,
    TransportError,
)

from .normalizer import normalize
from .reconciler import Reconciler
from .source_mappings import default_sources
from .stortinget_client import StortingetClient
from .sync_config import SyncSource, validate_sources
from .types import (
    SKIP_NOT_DUE,
    SKIP_ROUND_IN_PROGRESS,
    Clock,
    SyncOutcome,
    SyncRunResult,
    SyncSkipped,
    SyncWatermark,
    utc_now,
)

MaybeSyncResult = Union[list[SyncRunResult], SyncSkipped]


class StortingetSyncOrchestrator:
    """
    Orquestador del pipeline para todas las fuentes configuradas.

    Solo una ronda a la vez por proceso: el guard `_round_active` se marca
    antes del primer punto de suspensión. No hay lock distribuido.
    """

    def __init__(
        self,
        *,
        sources: Iterable[SyncSource],
        client: StortingetClient,
        reconciler: Reconciler,
        watermark_store: IWatermarkStore,
        min_interval: Optional[timedelta] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._sources = validate_sources(sources)
        if not self._sources:
            raise SyncConfigError("No hay fuentes configuradas para sincronizar")

        self._client = client
        self._reconciler = reconciler
        self._watermark_store = watermark_store
        self._min_interval = min_interval or min(s.min_interval for s in self._sources)
        if self._min_interval <= timedelta(0):
            raise SyncConfigError("El intervalo mínimo de sincronización debe ser positivo")
        self._clock = clock

        self._round_active = False
        self._last_round_started_at: Optional[datetime] = None
        self._last_results: list[SyncRunResult] = []

    @property
    def sources(self) -> tuple[SyncSource, ...]:
        return self._sources

    @property
    def min_interval(self) -> timedelta:
        return self._min_interval

    @property
    def round_active(self) -> bool:
        return self._round_active

    @property
    def last_round_started_at(self) -> Optional[datetime]:
        return self._last_round_started_at

    @property
    def last_results(self) -> list[SyncRunResult]:
        return list(self._last_results)

    async def get_watermark(self) -> Optional[SyncWatermark]:
        return await self._watermark_store.get()

    def next_due_at(self, watermark: Optional[SyncWatermark]) -> Optional[datetime]:
        if watermark is None:
            return None
        return watermark.last_sync_at + self._min_interval

    def is_due(self, watermark: Optional[SyncWatermark], now: datetime) -> bool:
        if watermark is None:
            return True
        return now - watermark.last_sync_at > self._min_interval

    async def maybe_sync(self) -> MaybeSyncResult:
        """
        Ejecuta una ronda si corresponde ("run if due").

        Returns:
            Lista de SyncRunResult (uno por fuente) o SyncSkipped
        """
        if self._round_active:
            logger.info("Sync omitido: ya hay una ronda en curso")
            return SyncSkipped(reason=SKIP_ROUND_IN_PROGRESS)

        self._round_active = True
        try:
            watermark = await self._watermark_store.get()
            started_at = self._clock()

            if not self.is_due(watermark, started_at):
                next_due = self.next_due_at(watermark)
                logger.info(
                    f"Sync omitido: última ronda {watermark.last_sync_at.isoformat()}, "
                    f"próxima a partir de {next_due.isoformat()}"
                )
                return SyncSkipped(
                    reason=SKIP_NOT_DUE,
                    last_sync_at=watermark.last_sync_at,
                    next_due_at=next_due,
                )

            return await self._run_round(started_at)
        finally:
            self._round_active = False

    async def _run_round(self, started_at: datetime) -> list[SyncRunResult]:
        logger.info(
            f"Iniciando sincronización con Stortinget ({len(self._sources)} fuentes): "
            f"{', '.join(s.name for s in self._sources)}"
        )

        # Settle-all: cada fuente termina (éxito o fallo) sin cancelar a las demás.
        outcomes = await asyncio.gather(
            *(self._sync_source(source) for source in self._sources),
            return_exceptions=True,
        )

        results: list[SyncRunResult] = []
        for source, outcome in zip(self._sources, outcomes):
            if isinstance(outcome, SyncRunResult):
                results.append(outcome)
                continue
            logger.opt(exception=outcome).error(f"[{source.name}] Error inesperado en la sincronización")
            results.append(
                SyncRunResult.rejected(
                    source.name,
                    f"Error inesperado: {type(outcome).__name__}: {outcome}",
                )
            )

        for result in results:
            self._log_result(result)

        await self._commit_watermark(started_at)
        self._last_round_started_at = started_at
        self._last_results = results

        ok = sum(1 for r in results if r.outcome is SyncOutcome.SUCCESS)
        logger.success(f"Sincronización terminada: {ok}/{len(results)} fuentes OK")
        return results

    async def _sync_source(self, source: SyncSource) -> SyncRunResult:
        try:
            raw_records = await self._client.fetch(source)
        except (TransportError, DecodeError) as e:
            return SyncRunResult.rejected(source.name, e.message)

        records = [normalize(source, raw) for raw in raw_records]
        reconciled = await self._reconciler.reconcile(source, records)
        errors = tuple(reconciled.errors)

        if records and len(errors) == len(records):
            return SyncRunResult.rejected(
                source.name,
                f"Fallaron los {len(records)} registros; primer error: {errors[0].message}",
                total_fetched=len(records),
                record_errors=errors,
            )

        message = (
            f"{len(records)} registros: {reconciled.inserted} nuevos, "
            f"{reconciled.updated} actualizados, {len(errors)} con error"
        )
        return SyncRunResult(
            source=source.name,
            outcome=SyncOutcome.SUCCESS,
            total_fetched=len(records),
            inserted=reconciled.inserted,
            updated=reconciled.updated,
            record_errors=errors,
            message=message,
        )

    async def _commit_watermark(self, started_at: datetime) -> None:
        try:
            await self._watermark_store.set(SyncWatermark.at(started_at))
        except Exception:
            # El próximo trigger reintentará antes de tiempo; no es fatal.
            logger.exception("No se pudo persistir el watermark del sync")

    @staticmethod
    def _log_result(result: SyncRunResult) -> None:
        if result.outcome is SyncOutcome.SUCCESS:
            logger.info(f"[{result.source}] Sync completado: {result.message}")
        else:
            logger.error(f"[{result.source}] Sync fallido: {result.message}")


def build_from_settings(
    settings: Settings,
    *,
    engine: AsyncEngine,
    watermark_store: Optional[IWatermarkStore] = None,
) -> StortingetSyncOrchestrator:
    """
    Constructor "oficial" del orquestador a partir de la configuración.

    Si no se pasa watermark_store se usa la tabla system_settings.
    """
    from folkets_storting.infrastructure.repositories.entity_repository import (
        SqlAlchemyEntityRepository,
    )
    from folkets_storting.infrastructure.repositories.watermark_repository import (
        SystemSettingsWatermarkStore,
    )

    if settings.SYNC_INTERVAL_HOURS <= 0:
        raise SyncConfigError(
            f"SYNC_INTERVAL_HOURS debe ser positivo. Valor actual: {settings.SYNC_INTERVAL_HOURS}"
        )

    client = StortingetClient(
        base_url=settings.STORTINGET_API_BASE_URL,
        timeout_s=settings.STORTINGET_HTTP_TIMEOUT_SECONDS,
        user_agent=settings.STORTINGET_USER_AGENT,
    )
    return StortingetSyncOrchestrator(
        sources=default_sources(settings.sync_interval),
        client=client,
        reconciler=Reconciler(SqlAlchemyEntityRepository(engine)),
        watermark_store=watermark_store or SystemSettingsWatermarkStore(engine),
        min_interval=settings.sync_interval,
    )
