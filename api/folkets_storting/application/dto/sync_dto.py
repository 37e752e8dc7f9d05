"""
DTOs relacionados con la sincronizacion con Stortinget.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class RecordErrorDTO(BaseModel):
    """Error de escritura de un registro individual."""
    external_id: Optional[str] = None
    index: int
    message: str


class SyncRunResultDTO(BaseModel):
    """Resultado de la sincronizacion de una fuente."""
    source: str
    outcome: str = Field(..., description="success | rejected")
    total_fetched: int = 0
    inserted: int = 0
    updated: int = 0
    record_errors: List[RecordErrorDTO] = Field(default_factory=list)
    message: str = ""


class SyncTriggerResponseDTO(BaseModel):
    """Respuesta del trigger "run if due"."""
    executed: bool
    skipped_reason: Optional[str] = Field(None, description="not_due | round_in_progress")
    last_sync_at: Optional[datetime] = None
    next_due_at: Optional[datetime] = None
    results: List[SyncRunResultDTO] = Field(default_factory=list)


class SyncStatusDTO(BaseModel):
    """Estado actual del motor de sincronizacion."""
    round_active: bool
    interval_hours: float
    sources: List[str]
    last_sync_at: Optional[datetime] = None
    next_due_at: Optional[datetime] = None
    last_round_started_at: Optional[datetime] = None
    last_results: List[SyncRunResultDTO] = Field(default_factory=list)
