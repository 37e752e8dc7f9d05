"""
Configuración de fixtures para pytest.
"""
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

# Registra los modelos en Base.metadata
import folkets_storting.infrastructure.database  # noqa: F401
from folkets_storting.infrastructure.database.session import build_engine, close_db, init_db


class TickingClock:
    """Reloj determinista: cada llamada avanza `step`."""

    def __init__(self, start: datetime, step: timedelta = timedelta(milliseconds=1)):
        self.current = start
        self.step = step
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        self.calls += 1
        return value


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine SQLite en archivo temporal, con todas las tablas creadas.

    Se usa archivo (no :memory:) porque cada conexión del pool abriría
    una base de datos distinta.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)

    yield engine

    await close_db(engine)
