"""
Configuración del sync (mapeo API Stortinget -> tablas locales).

La idea es que aquí tengas control total de:
- endpoint upstream y envelope de la respuesta
- tabla destino
- mapeos de campos con su orden de precedencia
- campos derivados (desde el external id) y calculados (desde otros campos)

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Iterable, Mapping

from folkets_storting.shared.exceptions.sync import SyncConfigError

from .types import FieldMapping

# Construye el valor de un campo derivado a partir del external id.
DerivedField = Callable[[str], Any]

# Calcula un campo a partir de los campos ya resueltos del registro.
ComputedField = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class SyncSource:
    """
    Una fuente upstream -> una tabla local.

    NOTA sobre la clave:
    - `external_id_column` es la clave natural estable (UNIQUE en la tabla).
    - Debe existir un FieldMapping para esa columna.
    - `computed_fields` se aplican en orden, después de los derivados, y
      no pueden calcular la columna clave.
    """

    name: str
    endpoint: str
    envelope_key: str
    target_table: str
    field_mappings: tuple[FieldMapping, ...]
    derived_fields: Mapping[str, DerivedField] = field(default_factory=dict)
    computed_fields: Mapping[str, ComputedField] = field(default_factory=dict)
    external_id_column: str = "stortinget_id"
    min_interval: timedelta = timedelta(hours=24)

    def __post_init__(self) -> None:
        if not any(m.column == self.external_id_column for m in self.field_mappings):
            raise SyncConfigError(
                f"La fuente '{self.name}' no mapea la columna clave '{self.external_id_column}'"
            )
        if self.min_interval <= timedelta(0):
            raise SyncConfigError(f"La fuente '{self.name}' tiene un intervalo no positivo")
        if self.external_id_column in self.computed_fields:
            raise SyncConfigError(
                f"La fuente '{self.name}' no puede calcular la columna clave '{self.external_id_column}'"
            )


def validate_sources(sources: Iterable[SyncSource]) -> tuple[SyncSource, ...]:
    """Verifica que no haya nombres repetidos y retorna las fuentes como tupla."""
    result = tuple(sources)
    seen: set[str] = set()
    for source in result:
        if source.name in seen:
            raise SyncConfigError(f"Fuente duplicada: {source.name}")
        seen.add(source.name)
    return result
