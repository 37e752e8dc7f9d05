"""
Dependencias para inyeccion de casos de uso.
"""
from fastapi import Request

from folkets_storting.application.use_cases.sync_use_cases import StortingetSyncUseCases
from folkets_storting.shared.exceptions.base import AppException


def get_sync_use_cases(request: Request) -> StortingetSyncUseCases:
    """
    Dependencia para obtener los casos de uso de sincronizacion.

    La instancia se crea en el startup y vive en `app.state`, para que el
    guard de "ronda activa" sea unico por proceso.

    Returns:
        StortingetSyncUseCases: Instancia compartida
    """
    use_cases = getattr(request.app.state, "sync_use_cases", None)
    if use_cases is None:
        raise AppException(
            message="El motor de sincronizacion no esta inicializado",
            status_code=503,
            error_code="SYNC_NOT_READY",
        )
    return use_cases
