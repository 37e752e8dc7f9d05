"""
Punto de entrada de la API de Folkets Storting.

Expone el motor de sincronización con Stortinget (`/api/v1/sync`) y un
health check que incluye el estado del último sync.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from folkets_storting.core.config import settings, get_cors_origins
from folkets_storting.core.events import lifespan
from folkets_storting.api.v1.router import api_router
from folkets_storting.api.middlewares.error_handler import ErrorHandlerMiddleware
from folkets_storting.shared.exceptions.base import AppException


def _register_middlewares(application: FastAPI) -> None:
    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Último en registrarse = más externo: atrapa lo que nadie manejó
    application.add_middleware(ErrorHandlerMiddleware)


def _register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _register_health(application: FastAPI) -> None:
    @application.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Estado de la aplicación y, si ya arrancó, del motor de sync."""
        body = {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }
        sync_use_cases = getattr(request.app.state, "sync_use_cases", None)
        if sync_use_cases is not None:
            body["sync"] = {"round_active": sync_use_cases.orchestrator.round_active}
        return body


def create_application() -> FastAPI:
    """
    Factory de la aplicación FastAPI.

    El motor de sync se crea en el lifespan (ver core/events.py), no aquí:
    crear la app no abre conexiones ni dispara rondas.
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Sincronización de representantes y saker desde la API abierta de Stortinget",
        lifespan=lifespan,
    )

    _register_middlewares(application)
    _register_exception_handlers(application)
    application.include_router(api_router, prefix="/api")
    _register_health(application)

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn
    from loguru import logger

    access_host = "localhost" if settings.HOST == "0.0.0.0" else settings.HOST
    base_url = f"http://{access_host}:{settings.PORT}"

    logger.info(f"Swagger UI:   {base_url}/docs")
    logger.info(f"Estado sync:  {base_url}/api/v1/sync/status")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
