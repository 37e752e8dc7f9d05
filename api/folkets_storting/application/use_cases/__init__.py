"""
Casos de uso de la aplicacion.
"""
from .sync_use_cases import StortingetSyncUseCases

__all__ = ["StortingetSyncUseCases"]
