"""
Normalización de registros upstream al formato canónico local.

Todas las funciones de este módulo son totales: nunca lanzan excepciones.
Un campo ausente o imposible de mapear se resuelve a None, de modo que un
registro mal formado no bloquea el lote (fallará, si corresponde, al escribir).
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from loguru import logger

from .sync_config import SyncSource
from .types import CanonicalRecord, FieldMapping, from_epoch_ms

# Formato legado de la API: /Date(208044000000+0200)/
_WRAPPED_EPOCH_RE = re.compile(r"^/Date\((-?\d{1,20})([+-]\d{4})?\)/$")

# Marca de "campo ausente" (distinto de un null explícito en el JSON).
_MISSING = object()


def normalize_date(value: Any) -> Optional[str]:
    """
    Convierte una fecha upstream a 'YYYY-MM-DD' o None.

    Formatos soportados:
    - /Date(<millis><±HHMM>?)/ : se toma la fecha UTC del instante y el
      offset se descarta.
    - ISO-8601 con componente de hora: se trunca en el separador fecha/hora.

    Cualquier otro valor (incluyendo fechas ISO sin hora) retorna None.
    """
    if not isinstance(value, str):
        return None

    text = value.strip()
    match = _WRAPPED_EPOCH_RE.match(text)
    if match:
        try:
            instant = from_epoch_ms(int(match.group(1)))
        except (OverflowError, ValueError):
            return None
        return instant.date().isoformat()

    for separator in ("T", " "):
        if separator in text:
            candidate = text.split(separator, 1)[0]
            try:
                return date.fromisoformat(candidate).isoformat()
            except ValueError:
                return None
    return None


def to_date(value: Any) -> Optional[date]:
    """Igual que normalize_date, pero retorna un objeto date."""
    normalized = normalize_date(value)
    return date.fromisoformat(normalized) if normalized else None


def to_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def enum_text(mapping: Mapping[int, str]):
    """
    Transform para enums de la API: en JSON vienen como enteros,
    en versiones nuevas como texto.
    """

    def _transform(value: Any) -> Optional[str]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return mapping.get(value)
        if isinstance(value, str) and value.strip().isdigit():
            return mapping.get(int(value.strip()))
        text = to_text(value)
        return text.lower() if text else None

    return _transform


def resolve_path(raw: Any, path: str) -> Any:
    """
    Resuelve una ruta con puntos ("parti.navn", "komiteer_liste.0.navn").

    Retorna _MISSING si algún segmento no existe. Los segmentos numéricos
    indexan listas.
    """
    current = raw
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.isdigit() or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
        else:
            return _MISSING
    return current


def resolve_field(raw: Any, mapping: FieldMapping) -> Any:
    """
    Aplica la tabla de precedencia: la primera ruta presente gana.

    Un null explícito cuenta como presente (corta la búsqueda).
    """
    for path in mapping.source_paths:
        value = resolve_path(raw, path)
        if value is _MISSING:
            continue
        if value is None or mapping.transform is None:
            return value
        try:
            return mapping.transform(value)
        except Exception as e:
            logger.debug(f"Transform de '{mapping.column}' falló para {value!r}: {e}")
            return None
    return None


def normalize(source: SyncSource, raw: Any) -> CanonicalRecord:
    """Convierte un RawRecord al CanonicalRecord de la fuente. Nunca falla."""
    if not isinstance(raw, Mapping):
        raw = {}

    fields: dict[str, Any] = {}
    for mapping in source.field_mappings:
        fields[mapping.column] = resolve_field(raw, mapping)

    external_id = to_text(fields.get(source.external_id_column))
    fields[source.external_id_column] = external_id

    for column, build in source.derived_fields.items():
        if external_id is None:
            fields[column] = None
            continue
        try:
            fields[column] = build(external_id)
        except Exception as e:
            logger.debug(f"Campo derivado '{column}' falló para {external_id}: {e}")
            fields[column] = None

    for column, compute in source.computed_fields.items():
        try:
            fields[column] = compute(fields)
        except Exception as e:
            logger.debug(f"Campo calculado '{column}' falló para {external_id}: {e}")
            fields[column] = None

    return CanonicalRecord(external_id=external_id, fields=fields)
