"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable
from fastapi import FastAPI
from loguru import logger

from folkets_storting.core.config import settings
from folkets_storting.infrastructure.database.session import engine, init_db, close_db
from folkets_storting.infrastructure.external.stortinget_sync.sync_service import build_from_settings
from folkets_storting.application.use_cases.sync_use_cases import StortingetSyncUseCases


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.
    
    Args:
        app: Instancia de FastAPI
        
    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")
            
            # Configurar logging adicional
            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )
            
            # Inicializar base de datos (crea tablas si no existen)
            await init_db()
            logger.info("Base de datos inicializada")
            
            # Motor de sincronizacion (uno por proceso)
            orchestrator = build_from_settings(settings, engine=engine)
            app.state.sync_use_cases = StortingetSyncUseCases(orchestrator)
            logger.info(
                f"Sync Stortinget configurado: fuentes={[s.name for s in orchestrator.sources]}, "
                f"intervalo={settings.SYNC_INTERVAL_HOURS}h"
            )
            
            if settings.SYNC_ON_STARTUP:
                app.state.sync_use_cases.schedule_startup_sync(settings.SYNC_STARTUP_DELAY_SECONDS)
                logger.info(
                    f"Sync de arranque programado en {settings.SYNC_STARTUP_DELAY_SECONDS}s"
                )
            
            logger.success("Aplicacion iniciada correctamente")
            
        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise
    
    return startup


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.
    
    Args:
        app: Instancia de FastAPI
        
    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")
        
        # Una ronda en curso se deja terminar antes de cerrar la base de datos
        sync_use_cases = getattr(app.state, "sync_use_cases", None)
        if sync_use_cases is not None:
            await sync_use_cases.shutdown()
        
        # Cerrar conexiones de base de datos
        await close_db()
        logger.info("Conexiones de base de datos cerradas")
        
        logger.success("Aplicacion cerrada correctamente")
    
    return shutdown


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan de FastAPI: startup al entrar, shutdown al salir."""
    await startup_handler(app)()
    try:
        yield
    finally:
        await shutdown_handler(app)()
