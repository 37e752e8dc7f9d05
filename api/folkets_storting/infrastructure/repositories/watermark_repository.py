"""
Persistencia del watermark del sync en la tabla system_settings.
"""
from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from folkets_storting.domain.repositories.sync_repositories import IWatermarkStore
from folkets_storting.infrastructure.external.stortinget_sync.types import SyncWatermark, to_epoch_ms
from folkets_storting.infrastructure.repositories.system_settings_repository import (
    SystemSettingsRepository,
)

WATERMARK_KEY = "stortinget_last_sync_ms"

# Por encima de esto, sumar el intervalo desborda datetime.
_MAX_WATERMARK_MS = to_epoch_ms(datetime(9000, 1, 1, tzinfo=timezone.utc))


class SystemSettingsWatermarkStore(IWatermarkStore):
    """
    Guarda el watermark como epoch millis bajo una clave de system_settings.
    Un valor ausente o corrupto se trata como "nunca sincronizado".
    """

    def __init__(self, engine: AsyncEngine, key: str = WATERMARK_KEY) -> None:
        self._key = key
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    async def get(self) -> Optional[SyncWatermark]:
        async with self._session_factory() as session:
            millis = await SystemSettingsRepository(session).get_int(self._key)
        if millis is None:
            return None

        if not 0 <= millis < _MAX_WATERMARK_MS:
            logger.warning(f"Watermark '{self._key}' fuera de rango ({millis}); se ignora")
            return None
        return SyncWatermark(last_sync_timestamp_ms=millis)

    async def set(self, watermark: SyncWatermark) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await SystemSettingsRepository(session).set_value(
                    self._key,
                    watermark.last_sync_timestamp_ms,
                    "Epoch millis de la última ronda de sincronización con Stortinget.",
                )
