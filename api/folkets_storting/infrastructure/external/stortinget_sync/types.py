"""
Tipos y utilidades puras para el pipeline Stortinget -> base de datos.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Mapping, Optional

# Registro tal como lo devuelve la API upstream (sin tipar).
RawRecord = Mapping[str, Any]

Transform = Callable[[Any], Any]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    SQLite devuelve datetimes naive; los tratamos como UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    return (ensure_utc(dt) - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


@dataclass(frozen=True)
class FieldMapping:
    """
    Define cómo resolver una columna local a partir de un registro upstream.

    - column: nombre de la columna local
    - source_paths: rutas alternativas (con puntos) en orden de precedencia.
      La primera ruta presente gana, p.ej. ("parti.navn", "parti_navn").
    - transform: función opcional aplicada al valor encontrado
    """

    column: str
    source_paths: tuple[str, ...]
    transform: Optional[Transform] = None


@dataclass(frozen=True)
class CanonicalRecord:
    """Registro normalizado, independiente de la forma upstream."""

    external_id: Optional[str]
    fields: dict[str, Any]


@dataclass(frozen=True)
class StoredEntity:
    """Lo que el store devuelve tras un upsert, para clasificar insert/update."""

    external_id: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_insert(self) -> bool:
        # Aproximación: dos escrituras en el mismo tick se ven como insert.
        return self.created_at == self.updated_at


@dataclass(frozen=True)
class SyncWatermark:
    """Timestamp (epoch millis) de la última ronda completada."""

    last_sync_timestamp_ms: int

    @property
    def last_sync_at(self) -> datetime:
        return from_epoch_ms(self.last_sync_timestamp_ms)

    @classmethod
    def at(cls, dt: datetime) -> "SyncWatermark":
        return cls(last_sync_timestamp_ms=to_epoch_ms(dt))


class SyncOutcome(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


@dataclass
class ReconcileResult:
    inserted: int = 0
    updated: int = 0
    errors: list = field(default_factory=list)


@dataclass(frozen=True)
class SyncRunResult:
    """Resultado del intento de sincronización de una fuente."""

    source: str
    outcome: SyncOutcome
    total_fetched: int = 0
    inserted: int = 0
    updated: int = 0
    record_errors: tuple = ()
    message: str = ""

    @classmethod
    def rejected(cls, source: str, message: str, *, total_fetched: int = 0, record_errors: tuple = ()) -> "SyncRunResult":
        return cls(
            source=source,
            outcome=SyncOutcome.REJECTED,
            total_fetched=total_fetched,
            record_errors=record_errors,
            message=message,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "outcome": self.outcome.value,
            "total_fetched": self.total_fetched,
            "inserted": self.inserted,
            "updated": self.updated,
            "record_errors": [e.to_record_dict() for e in self.record_errors],
            "message": self.message,
        }


@dataclass(frozen=True)
class SyncSkipped:
    """La ronda no se ejecutó: no tocaba todavía o ya hay una en curso."""

    reason: str
    last_sync_at: Optional[datetime] = None
    next_due_at: Optional[datetime] = None


SKIP_NOT_DUE = "not_due"
SKIP_ROUND_IN_PROGRESS = "round_in_progress"
