"""
Red de seguridad HTTP: cualquier excepción que no sea AppException
termina aquí como un 500 con el formato estándar de error.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger


INTERNAL_ERROR_BODY = {
    "error": "INTERNAL_SERVER_ERROR",
    "message": "Ha ocurrido un error interno del servidor",
    "details": {},
}


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """No expone detalles del error al cliente; el traceback va al log."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path}"
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=INTERNAL_ERROR_BODY,
            )
