"""
Tests unitarios para StortingetSyncUseCases.

El orquestador se mockea: aquí se verifica el mapeo a DTOs y el ciclo
de vida del trigger de arranque.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from folkets_storting.application.use_cases.sync_use_cases import StortingetSyncUseCases
from folkets_storting.infrastructure.external.stortinget_sync.source_mappings import default_sources
from folkets_storting.infrastructure.external.stortinget_sync.types import (
    SKIP_NOT_DUE,
    SyncOutcome,
    SyncRunResult,
    SyncSkipped,
    SyncWatermark,
)
from folkets_storting.shared.exceptions.sync import RecordError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    mock.maybe_sync = AsyncMock()
    mock.get_watermark = AsyncMock(return_value=None)
    mock.sources = default_sources()
    mock.min_interval = timedelta(hours=24)
    mock.round_active = False
    mock.last_round_started_at = None
    mock.last_results = []
    mock.next_due_at = MagicMock(return_value=None)
    return mock


class TestRunIfDue:
    """Tests para run_if_due."""

    @pytest.mark.asyncio
    async def test_skipped_round(self, orchestrator) -> None:
        orchestrator.maybe_sync.return_value = SyncSkipped(
            reason=SKIP_NOT_DUE,
            last_sync_at=NOW,
            next_due_at=NOW + timedelta(hours=24),
        )

        response = await StortingetSyncUseCases(orchestrator).run_if_due()

        assert response.executed is False
        assert response.skipped_reason == "not_due"
        assert response.next_due_at == NOW + timedelta(hours=24)
        assert response.results == []

    @pytest.mark.asyncio
    async def test_executed_round_maps_results(self, orchestrator) -> None:
        orchestrator.maybe_sync.return_value = [
            SyncRunResult(
                source="saker",
                outcome=SyncOutcome.SUCCESS,
                total_fetched=3,
                inserted=2,
                updated=0,
                record_errors=(RecordError("S3", 2, "IntegrityError: NOT NULL"),),
                message="3 registros",
            ),
            SyncRunResult.rejected("representanter", "Stortinget respondió 500"),
        ]

        response = await StortingetSyncUseCases(orchestrator).run_if_due()

        assert response.executed is True
        assert [r.outcome for r in response.results] == ["success", "rejected"]
        assert response.results[0].record_errors[0].external_id == "S3"
        assert response.results[0].record_errors[0].index == 2


class TestGetStatus:
    @pytest.mark.asyncio
    async def test_status_with_watermark(self, orchestrator) -> None:
        orchestrator.get_watermark.return_value = SyncWatermark.at(NOW)
        orchestrator.next_due_at.return_value = NOW + timedelta(hours=24)

        status = await StortingetSyncUseCases(orchestrator).get_status()

        assert status.last_sync_at == NOW
        assert status.next_due_at == NOW + timedelta(hours=24)
        assert status.interval_hours == 24
        assert status.sources == ["saker", "representanter"]
        assert status.round_active is False

    @pytest.mark.asyncio
    async def test_status_never_synced(self, orchestrator) -> None:
        status = await StortingetSyncUseCases(orchestrator).get_status()

        assert status.last_sync_at is None
        assert status.next_due_at is None


class TestStartupSync:
    """Tests del trigger de arranque y del shutdown."""

    @pytest.mark.asyncio
    async def test_runs_after_delay(self, orchestrator) -> None:
        orchestrator.maybe_sync.return_value = []
        use_cases = StortingetSyncUseCases(orchestrator)

        task = use_cases.schedule_startup_sync(0)
        await task

        orchestrator.maybe_sync.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_schedule_is_idempotent(self, orchestrator) -> None:
        use_cases = StortingetSyncUseCases(orchestrator)

        first = use_cases.schedule_startup_sync(10)
        second = use_cases.schedule_startup_sync(10)

        assert first is second
        await use_cases.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_trigger(self, orchestrator) -> None:
        use_cases = StortingetSyncUseCases(orchestrator)

        task = use_cases.schedule_startup_sync(60)
        await asyncio.sleep(0)
        await use_cases.shutdown()

        assert task.cancelled()
        orchestrator.maybe_sync.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_running_round(self, orchestrator) -> None:
        release = asyncio.Event()
        finished = []

        async def slow_sync():
            await release.wait()
            finished.append(True)
            return []

        orchestrator.maybe_sync.side_effect = slow_sync
        use_cases = StortingetSyncUseCases(orchestrator)

        use_cases.schedule_startup_sync(0)
        await asyncio.sleep(0.01)
        shutdown = asyncio.create_task(use_cases.shutdown())
        await asyncio.sleep(0)
        release.set()
        await shutdown

        assert finished == [True]

    @pytest.mark.asyncio
    async def test_errors_in_startup_round_are_not_raised(self, orchestrator) -> None:
        orchestrator.maybe_sync.side_effect = RuntimeError("fallo inesperado")
        use_cases = StortingetSyncUseCases(orchestrator)

        await use_cases.schedule_startup_sync(0)

        orchestrator.maybe_sync.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_without_trigger_is_noop(self, orchestrator) -> None:
        await StortingetSyncUseCases(orchestrator).shutdown()
