"""
Watermark en memoria (tests y ejecuciones efímeras).

La implementación persistente vive en
`infrastructure/repositories/watermark_repository.py`.
"""

from __future__ import annotations

from typing import Optional

from folkets_storting.domain.repositories.sync_repositories import IWatermarkStore

from .types import SyncWatermark


class InMemoryWatermarkStore(IWatermarkStore):
    def __init__(self, initial: Optional[SyncWatermark] = None) -> None:
        self._watermark = initial
        self.writes = 0

    async def get(self) -> Optional[SyncWatermark]:
        return self._watermark

    async def set(self, watermark: SyncWatermark) -> None:
        self._watermark = watermark
        self.writes += 1
