"""
Repositorio de la tabla clave/valor system_settings.

El sync guarda aquí su watermark; otras claves pueden convivir.
"""
from typing import Any, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from folkets_storting.infrastructure.database.models import SystemSettingsModel


class SystemSettingsRepository:
    """
    Lectura/escritura de configuraciones. No hace commit: la transacción
    la controla quien crea la sesión.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_value(self, key: str, default: Any = None) -> Any:
        result = await self.db.execute(
            select(SystemSettingsModel.value).where(SystemSettingsModel.key == key)
        )
        value = result.scalar_one_or_none()
        return default if value is None else value

    async def get_int(self, key: str) -> Optional[int]:
        """
        Retorna el valor como entero, o None si no existe o no es numérico
        (p.ej. editado a mano con un texto).
        """
        value = await self.get_value(key)
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Configuración '{key}' tiene un valor no numérico: {value!r}")
            return None

    async def set_value(self, key: str, value: Any, description: Optional[str] = None) -> None:
        setting = await self.db.get(SystemSettingsModel, key)
        if setting is None:
            self.db.add(SystemSettingsModel(key=key, value=value, description=description))
        else:
            setting.value = value
            if description:
                setting.description = description

        await self.db.flush()
        logger.debug(f"Configuración '{key}' = {value!r}")
