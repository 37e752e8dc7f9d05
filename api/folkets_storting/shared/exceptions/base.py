"""
Excepción base de la aplicación.

Las respuestas de error de la API usan siempre el formato de `to_dict()`.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepción base de la aplicación.

    Args:
        message: Mensaje de error descriptivo
        status_code: Código de estado HTTP con el que se responde
        error_code: Código de error estable (p.ej. "SYNC_NOT_READY")
        details: Detalles adicionales del error
    """
    
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Cuerpo JSON de la respuesta de error."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }
