"""
Engine async de SQLAlchemy y metadata compartida de los modelos.

Un único engine por proceso; cada repositorio abre sus propias sesiones
sobre él (ver infrastructure/repositories).
"""
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base

from folkets_storting.core.config import settings


Base = declarative_base()


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Crea el engine según el dialecto de la URL.

    - PostgreSQL (asyncpg): pool de conexiones con pre-ping.
    - SQLite (aiosqlite): sin pool configurable; se sube el timeout de
      bloqueo porque las fuentes escriben en paralelo.
    """
    kwargs: dict = {"echo": echo}

    if database_url.startswith("postgresql"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    elif database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"timeout": 30}

    return create_async_engine(database_url, **kwargs)


engine = build_engine(settings.effective_database_url, echo=settings.DEBUG)


async def init_db(target: AsyncEngine = engine) -> None:
    """Crea las tablas que falten (no altera las existentes; para eso, alembic)."""
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(target: AsyncEngine = engine) -> None:
    await target.dispose()
