"""
Casos de uso para la sincronizacion con la API de Stortinget.

Todas las superficies (startup, endpoint HTTP, CLI) pasan por `run_if_due`,
que delega en el orquestador. El guard de ronda activa vive en el
orquestador, asi que invocar esto en paralelo es seguro.
"""
import asyncio
from typing import Optional

from loguru import logger

from folkets_storting.application.dto.sync_dto import (
    SyncRunResultDTO,
    SyncStatusDTO,
    SyncTriggerResponseDTO,
)
from folkets_storting.infrastructure.external.stortinget_sync.sync_service import (
    StortingetSyncOrchestrator,
)
from folkets_storting.infrastructure.external.stortinget_sync.types import (
    SyncRunResult,
    SyncSkipped,
)


def _to_result_dto(result: SyncRunResult) -> SyncRunResultDTO:
    return SyncRunResultDTO(**result.to_dict())


class StortingetSyncUseCases:
    """
    Fachada de aplicacion sobre StortingetSyncOrchestrator.

    Tambien gestiona la tarea del trigger de arranque (con delay) para que
    el shutdown pueda cancelarla si todavia no empezo.
    """

    def __init__(self, orchestrator: StortingetSyncOrchestrator):
        self.orchestrator = orchestrator
        self._startup_task: Optional[asyncio.Task] = None
        self._startup_round_started = False

    async def run_if_due(self) -> SyncTriggerResponseDTO:
        """Ejecuta una ronda si el watermark lo permite."""
        outcome = await self.orchestrator.maybe_sync()

        if isinstance(outcome, SyncSkipped):
            return SyncTriggerResponseDTO(
                executed=False,
                skipped_reason=outcome.reason,
                last_sync_at=outcome.last_sync_at,
                next_due_at=outcome.next_due_at,
            )

        return SyncTriggerResponseDTO(
            executed=True,
            results=[_to_result_dto(r) for r in outcome],
        )

    async def get_status(self) -> SyncStatusDTO:
        watermark = await self.orchestrator.get_watermark()
        return SyncStatusDTO(
            round_active=self.orchestrator.round_active,
            interval_hours=self.orchestrator.min_interval.total_seconds() / 3600,
            sources=[s.name for s in self.orchestrator.sources],
            last_sync_at=watermark.last_sync_at if watermark else None,
            next_due_at=self.orchestrator.next_due_at(watermark),
            last_round_started_at=self.orchestrator.last_round_started_at,
            last_results=[_to_result_dto(r) for r in self.orchestrator.last_results],
        )

    def schedule_startup_sync(self, delay_seconds: float) -> asyncio.Task:
        """
        Programa una unica ejecucion "run if due" tras un delay corto,
        para no bloquear el arranque.
        """
        if self._startup_task is not None:
            return self._startup_task

        async def _delayed() -> None:
            await asyncio.sleep(delay_seconds)
            self._startup_round_started = True
            try:
                await self.run_if_due()
            except Exception:
                # Nada del sync es fatal para el proceso.
                logger.exception("Error en la sincronizacion de arranque")

        self._startup_task = asyncio.create_task(_delayed())
        return self._startup_task

    async def shutdown(self) -> None:
        """
        Cancela el trigger de arranque si aun espera; una ronda en curso
        se deja terminar.
        """
        task = self._startup_task
        if task is None or task.done():
            return

        if not self._startup_round_started:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Sync de arranque cancelado antes de iniciar")
            return

        logger.info("Esperando a que termine la ronda de sync en curso...")
        await task
