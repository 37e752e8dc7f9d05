"""
Repositorio SQLAlchemy (async) para las entidades sincronizadas.

UPSERT por clave natural con `INSERT ... ON CONFLICT DO UPDATE`:
- PostgreSQL (asyncpg) en producción
- SQLite (aiosqlite) en desarrollo/tests

Cada upsert corre en su propia transacción: un registro que falla
no hace rollback de sus vecinos.
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Table, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from loguru import logger

from folkets_storting.domain.repositories.sync_repositories import IEntityStore
from folkets_storting.infrastructure.database.session import Base
from folkets_storting.infrastructure.external.stortinget_sync.types import (
    CanonicalRecord,
    Clock,
    StoredEntity,
    ensure_utc,
    utc_now,
)

# Columnas que el sync nunca sobreescribe en un UPDATE.
_IMMUTABLE_COLUMNS = {"id", "created_at"}


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    raise ValueError(f"Dialecto no soportado para UPSERT: {dialect_name}")


class SqlAlchemyEntityRepository(IEntityStore):
    """
    Implementación de IEntityStore sobre las tablas de `Base.metadata`.
    """

    def __init__(self, engine: AsyncEngine, *, clock: Clock = utc_now) -> None:
        self._engine = engine
        self._clock = clock
        self._insert = _insert_for(engine.dialect.name)
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    def _table(self, name: str) -> Table:
        try:
            return Base.metadata.tables[name]
        except KeyError:
            raise ValueError(f"Tabla desconocida: {name}") from None

    def _build_values(self, table: Table, key_column: str, record: CanonicalRecord) -> dict[str, Any]:
        values = {
            column: value
            for column, value in record.fields.items()
            if column in table.c
        }
        ignored = set(record.fields) - set(values)
        if ignored:
            logger.debug(f"Columnas ignoradas para '{table.name}': {sorted(ignored)}")

        now = self._clock()
        values[key_column] = record.external_id
        values["id"] = str(uuid.uuid4())
        values["created_at"] = now
        values["updated_at"] = now
        return values

    async def upsert(self, table: str, key_column: str, record: CanonicalRecord) -> StoredEntity:
        if not record.external_id:
            raise ValueError(f"Registro sin '{key_column}', no se puede hacer UPSERT")

        target = self._table(table)
        values = self._build_values(target, key_column, record)

        stmt = self._insert(target).values(**values)
        update_set = {
            column: stmt.excluded[column]
            for column in values
            if column not in _IMMUTABLE_COLUMNS and column != key_column
        }
        stmt = stmt.on_conflict_do_update(
            index_elements=[target.c[key_column]],
            set_=update_set,
        )

        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(stmt)
                result = await session.execute(
                    select(target.c.created_at, target.c.updated_at).where(
                        target.c[key_column] == record.external_id
                    )
                )
                row = result.one()

        return StoredEntity(
            external_id=record.external_id,
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )
