"""
Tests unitarios para StortingetSyncOrchestrator.

Cubren el gating por watermark, el aislamiento entre fuentes (settle-all),
el guard de ronda activa y el avance del watermark.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from folkets_storting.infrastructure.external.stortinget_sync.reconciler import Reconciler
from folkets_storting.infrastructure.external.stortinget_sync.source_mappings import (
    representanter_source,
    saker_source,
)
from folkets_storting.infrastructure.external.stortinget_sync.sync_service import (
    StortingetSyncOrchestrator,
)
from folkets_storting.infrastructure.external.stortinget_sync.types import (
    SKIP_NOT_DUE,
    SKIP_ROUND_IN_PROGRESS,
    StoredEntity,
    SyncOutcome,
    SyncRunResult,
    SyncSkipped,
    SyncWatermark,
)
from folkets_storting.infrastructure.external.stortinget_sync.watermark import InMemoryWatermarkStore
from folkets_storting.infrastructure.repositories.entity_repository import SqlAlchemyEntityRepository
from folkets_storting.shared.exceptions.sync import DecodeError, SyncConfigError, TransportError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _sak(i: int) -> dict:
    return {"id": f"SAK{i}", "tittel": f"Sak nummer {i}", "status": 3}


def _rep(i: int) -> dict:
    return {"id": f"REP{i}", "fornavn": "Per", "etternavn": f"Hansen{i}"}


class FakeClient:
    """Cliente falso: respuestas (o excepciones) por nombre de fuente."""

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls: list[str] = []

    async def fetch(self, source):
        self.calls.append(source.name)
        response = self.responses[source.name]
        if isinstance(response, Exception):
            raise response
        return response


class RecordingStore:
    """Store que siempre reporta insert; puede fallar para ciertos ids."""

    def __init__(self, fail_all: bool = False):
        self.fail_all = fail_all
        self.writes: list[tuple[str, str]] = []

    async def upsert(self, table, key_column, record):
        if self.fail_all:
            raise RuntimeError("NOT NULL constraint failed")
        self.writes.append((table, record.external_id))
        return StoredEntity(record.external_id, NOW, NOW)


def _orchestrator(client, store=None, watermark_store=None, now=NOW):
    return StortingetSyncOrchestrator(
        sources=[saker_source(), representanter_source()],
        client=client,
        reconciler=Reconciler(store or RecordingStore()),
        watermark_store=watermark_store or InMemoryWatermarkStore(),
        min_interval=timedelta(hours=24),
        clock=lambda: now,
    )


class TestConstruction:
    def test_requires_at_least_one_source(self) -> None:
        with pytest.raises(SyncConfigError):
            StortingetSyncOrchestrator(
                sources=[],
                client=FakeClient({}),
                reconciler=Reconciler(RecordingStore()),
                watermark_store=InMemoryWatermarkStore(),
            )

    def test_rejects_duplicate_sources(self) -> None:
        with pytest.raises(SyncConfigError):
            StortingetSyncOrchestrator(
                sources=[saker_source(), saker_source()],
                client=FakeClient({}),
                reconciler=Reconciler(RecordingStore()),
                watermark_store=InMemoryWatermarkStore(),
            )

    def test_interval_defaults_to_smallest_source_interval(self) -> None:
        orchestrator = StortingetSyncOrchestrator(
            sources=[saker_source(timedelta(hours=6)), representanter_source(timedelta(hours=12))],
            client=FakeClient({}),
            reconciler=Reconciler(RecordingStore()),
            watermark_store=InMemoryWatermarkStore(),
        )

        assert orchestrator.min_interval == timedelta(hours=6)


class TestGating:
    """Tests para is_due / maybe_sync con watermark."""

    def test_is_due_without_watermark(self) -> None:
        assert _orchestrator(FakeClient({})).is_due(None, NOW) is True

    def test_is_due_is_strictly_greater_than_interval(self) -> None:
        orchestrator = _orchestrator(FakeClient({}))
        watermark = SyncWatermark.at(NOW - timedelta(hours=24))

        assert orchestrator.is_due(watermark, NOW) is False
        assert orchestrator.is_due(watermark, NOW + timedelta(milliseconds=1)) is True

    @pytest.mark.asyncio
    async def test_recent_watermark_skips_without_network(self) -> None:
        client = FakeClient({"saker": [], "representanter": []})
        last = NOW - timedelta(hours=1)
        watermark_store = InMemoryWatermarkStore(SyncWatermark.at(last))

        outcome = await _orchestrator(client, watermark_store=watermark_store).maybe_sync()

        assert isinstance(outcome, SyncSkipped)
        assert outcome.reason == SKIP_NOT_DUE
        assert outcome.last_sync_at == last
        assert outcome.next_due_at == last + timedelta(hours=24)
        assert client.calls == []
        assert watermark_store.writes == 0

    @pytest.mark.asyncio
    async def test_second_call_in_same_window_is_skipped(self) -> None:
        client = FakeClient({"saker": [_sak(1)], "representanter": [_rep(1)]})
        orchestrator = _orchestrator(client)

        first = await orchestrator.maybe_sync()
        second = await orchestrator.maybe_sync()

        assert isinstance(first, list)
        assert isinstance(second, SyncSkipped)
        assert sorted(client.calls) == ["representanter", "saker"]

    @pytest.mark.asyncio
    async def test_old_watermark_runs_round(self) -> None:
        client = FakeClient({"saker": [], "representanter": []})
        watermark_store = InMemoryWatermarkStore(SyncWatermark.at(NOW - timedelta(days=3)))

        outcome = await _orchestrator(client, watermark_store=watermark_store).maybe_sync()

        assert isinstance(outcome, list)
        assert (await watermark_store.get()).last_sync_at == NOW


class TestRound:
    """Tests de una ronda completa."""

    @pytest.mark.asyncio
    async def test_failing_source_does_not_affect_the_other(self) -> None:
        client = FakeClient(
            {
                "saker": TransportError("saker", "Stortinget respondió 503"),
                "representanter": [_rep(i) for i in range(10)],
            }
        )
        store = RecordingStore()
        watermark_store = InMemoryWatermarkStore()

        results = await _orchestrator(client, store, watermark_store).maybe_sync()

        by_source = {r.source: r for r in results}
        assert by_source["saker"].outcome is SyncOutcome.REJECTED
        assert "503" in by_source["saker"].message
        assert by_source["representanter"].outcome is SyncOutcome.SUCCESS
        assert by_source["representanter"].total_fetched == 10
        assert by_source["representanter"].inserted == 10
        assert len(store.writes) == 10
        assert all(table == "representanter" for table, _ in store.writes)
        # El watermark avanza aunque una fuente haya fallado.
        assert (await watermark_store.get()).last_sync_at == NOW

    @pytest.mark.asyncio
    async def test_results_keep_source_order(self) -> None:
        client = FakeClient({"saker": [_sak(1)], "representanter": DecodeError("representanter", "sin envelope")})

        results = await _orchestrator(client).maybe_sync()

        assert [r.source for r in results] == ["saker", "representanter"]
        assert [r.outcome for r in results] == [SyncOutcome.SUCCESS, SyncOutcome.REJECTED]

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_rejected_not_raised(self) -> None:
        client = FakeClient({"saker": KeyError("boom"), "representanter": []})

        results = await _orchestrator(client).maybe_sync()

        assert results[0].outcome is SyncOutcome.REJECTED
        assert "KeyError" in results[0].message
        assert results[1].outcome is SyncOutcome.SUCCESS

    @pytest.mark.asyncio
    async def test_all_records_failing_rejects_source_but_advances_watermark(self) -> None:
        client = FakeClient({"saker": [_sak(1), _sak(2)], "representanter": [_rep(1)]})
        watermark_store = InMemoryWatermarkStore()

        results = await _orchestrator(client, RecordingStore(fail_all=True), watermark_store).maybe_sync()

        for result in results:
            assert result.outcome is SyncOutcome.REJECTED
            assert len(result.record_errors) == result.total_fetched
        assert watermark_store.writes == 1

    @pytest.mark.asyncio
    async def test_empty_source_is_success(self) -> None:
        client = FakeClient({"saker": [], "representanter": []})

        results = await _orchestrator(client).maybe_sync()

        assert all(r.outcome is SyncOutcome.SUCCESS and r.total_fetched == 0 for r in results)

    @pytest.mark.asyncio
    async def test_watermark_write_failure_is_not_fatal(self) -> None:
        client = FakeClient({"saker": [_sak(1)], "representanter": []})
        watermark_store = InMemoryWatermarkStore()
        watermark_store.set = AsyncMock(side_effect=RuntimeError("db caída"))

        results = await _orchestrator(client, watermark_store=watermark_store).maybe_sync()

        assert len(results) == 2
        watermark_store.set.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_last_results_are_exposed(self) -> None:
        client = FakeClient({"saker": [_sak(1)], "representanter": []})
        orchestrator = _orchestrator(client)

        results = await orchestrator.maybe_sync()

        assert orchestrator.last_results == results
        assert orchestrator.last_round_started_at == NOW
        assert orchestrator.round_active is False


class TestConcurrency:
    """Tests del guard de ronda activa."""

    @pytest.mark.asyncio
    async def test_concurrent_trigger_is_skipped(self) -> None:
        release = asyncio.Event()

        class SlowClient(FakeClient):
            async def fetch(self, source):
                await release.wait()
                return await super().fetch(source)

        client = SlowClient({"saker": [_sak(1)], "representanter": [_rep(1)]})
        orchestrator = _orchestrator(client)

        first = asyncio.create_task(orchestrator.maybe_sync())
        await asyncio.sleep(0)
        assert orchestrator.round_active is True

        second = await orchestrator.maybe_sync()
        release.set()
        first_result = await first

        assert isinstance(second, SyncSkipped)
        assert second.reason == SKIP_ROUND_IN_PROGRESS
        assert all(isinstance(r, SyncRunResult) for r in first_result)
        assert sorted(client.calls) == ["representanter", "saker"]


class TestEndToEndSqlite:
    """Ronda completa contra SQLite real: dos rondas separadas por el intervalo."""

    @pytest.mark.asyncio
    async def test_second_round_updates_existing_rows(self, sqlite_engine, clock) -> None:
        client = FakeClient({"saker": [_sak(i) for i in range(3)], "representanter": [_rep(i) for i in range(2)]})
        times = iter([NOW, NOW + timedelta(hours=25)])
        orchestrator = StortingetSyncOrchestrator(
            sources=[saker_source(), representanter_source()],
            client=client,
            reconciler=Reconciler(SqlAlchemyEntityRepository(sqlite_engine, clock=clock)),
            watermark_store=InMemoryWatermarkStore(),
            min_interval=timedelta(hours=24),
            clock=lambda: next(times),
        )

        first = await orchestrator.maybe_sync()
        second = await orchestrator.maybe_sync()

        assert [(r.inserted, r.updated) for r in first] == [(3, 0), (2, 0)]
        assert [(r.inserted, r.updated) for r in second] == [(0, 3), (0, 2)]
