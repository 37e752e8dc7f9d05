"""
Endpoints para sincronizacion de datos externos.
Permite disparar la sincronizacion con la API de Stortinget y consultar su estado.
"""
from fastapi import APIRouter, Depends, status
from loguru import logger

from folkets_storting.api.v1.dependencies.use_case_deps import get_sync_use_cases
from folkets_storting.application.dto.sync_dto import SyncStatusDTO, SyncTriggerResponseDTO
from folkets_storting.application.use_cases.sync_use_cases import StortingetSyncUseCases


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "/run",
    response_model=SyncTriggerResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar con Stortinget si corresponde"
)
async def run_sync(
    use_cases: StortingetSyncUseCases = Depends(get_sync_use_cases),
) -> SyncTriggerResponseDTO:
    """
    Ejecuta una ronda de sincronizacion si el intervalo minimo ya paso.

    - Si no toca (o ya hay una ronda en curso) retorna `executed=false`
      con el motivo, sin tocar red ni base de datos.
    - Si toca, retorna el resultado de cada fuente. Una fuente fallida
      aparece como `rejected`; el endpoint igual responde 200.
    """
    logger.info("Sincronizacion solicitada desde API")
    return await use_cases.run_if_due()


@router.get(
    "/status",
    response_model=SyncStatusDTO,
    summary="Estado de la sincronizacion"
)
async def sync_status(
    use_cases: StortingetSyncUseCases = Depends(get_sync_use_cases),
) -> SyncStatusDTO:
    """Watermark, proxima ronda y resultados de la ultima ronda."""
    return await use_cases.get_status()
