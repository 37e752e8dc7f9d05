"""
Interfaces de persistencia del motor de sincronización.
Definen el contrato que debe cumplir cualquier implementación.
"""
from abc import ABC, abstractmethod
from typing import Optional

from folkets_storting.infrastructure.external.stortinget_sync.types import (
    CanonicalRecord,
    StoredEntity,
    SyncWatermark,
)


class IEntityStore(ABC):
    """
    Store local de entidades sincronizadas.
    Cada llamada a `upsert` es una escritura independiente (éxito o fallo).
    """

    @abstractmethod
    async def upsert(self, table: str, key_column: str, record: CanonicalRecord) -> StoredEntity:
        """
        Inserta o actualiza la entidad identificada por `record.external_id`.

        Args:
            table: Tabla destino
            key_column: Columna UNIQUE con la clave natural
            record: Registro normalizado

        Returns:
            StoredEntity: created_at/updated_at leídos tras la escritura

        Raises:
            Exception: cualquier fallo de escritura (constraint, conexión, ...)
        """
        pass


class IWatermarkStore(ABC):
    """
    Almacenamiento del watermark (timestamp de la última ronda completada).
    """

    @abstractmethod
    async def get(self) -> Optional[SyncWatermark]:
        """Retorna el watermark actual o None si nunca se sincronizó."""
        pass

    @abstractmethod
    async def set(self, watermark: SyncWatermark) -> None:
        """Persiste el watermark."""
        pass
