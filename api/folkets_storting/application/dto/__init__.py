"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import (
    RecordErrorDTO,
    SyncRunResultDTO,
    SyncTriggerResponseDTO,
    SyncStatusDTO,
)

__all__ = [
    "RecordErrorDTO",
    "SyncRunResultDTO",
    "SyncTriggerResponseDTO",
    "SyncStatusDTO",
]
