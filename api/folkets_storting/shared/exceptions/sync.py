"""
Excepciones del motor de sincronización con la API de Stortinget.

Taxonomía:
- TransportError: red caída o status no exitoso. Fatal solo para su fuente.
- DecodeError: payload upstream mal formado. Fatal solo para su fuente.
- RecordError: fallo al escribir un registro. No fatal, se acumula.
"""
from typing import Any, Optional

from folkets_storting.shared.exceptions.base import AppException


class SyncException(AppException):
    """Excepción base para errores de sincronización."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "SYNC_ERROR",
        details: Optional[dict] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details,
        )


class SyncConfigError(SyncException):
    """Configuración inválida del pipeline (fuentes duplicadas, intervalos, etc.)."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="SYNC_CONFIG_ERROR")


class TransportError(SyncException):
    """El endpoint upstream no respondió o devolvió un status no exitoso."""

    def __init__(self, source: str, message: str, upstream_status: Optional[int] = None):
        self.source = source
        self.upstream_status = upstream_status
        details: dict[str, Any] = {"source": source}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            status_code=502,
            error_code="UPSTREAM_TRANSPORT_ERROR",
            details=details,
        )


class DecodeError(SyncException):
    """El cuerpo de la respuesta no tiene el envelope esperado."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(
            message=message,
            status_code=502,
            error_code="UPSTREAM_DECODE_ERROR",
            details={"source": source},
        )


class RecordError(SyncException):
    """Fallo al escribir un registro individual. Nunca sale del Reconciler."""

    def __init__(self, external_id: Optional[str], index: int, message: str):
        self.external_id = external_id
        self.index = index
        super().__init__(
            message=message,
            status_code=422,
            error_code="RECORD_WRITE_ERROR",
            details={"external_id": external_id, "index": index},
        )

    def to_record_dict(self) -> dict[str, Any]:
        return {
            "external_id": self.external_id,
            "index": self.index,
            "message": self.message,
        }
