"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
import json
from datetime import timedelta
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Configuracion de desarrollo vs produccion:
    - ENVIRONMENT: 'development' o 'production'
    - DATABASE_URL: postgresql+asyncpg://... en produccion,
      sqlite+aiosqlite://... para desarrollo local
    - SYNC_ON_STARTUP: dispara una ronda de sync al iniciar (si toca)
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Folkets Storting Sync")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./folkets_storting.db")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # API upstream de Stortinget
    STORTINGET_API_BASE_URL: str = Field(default="https://data.stortinget.no/eksport")
    STORTINGET_HTTP_TIMEOUT_SECONDS: float = Field(default=30.0)
    STORTINGET_USER_AGENT: str = Field(default="folkets-storting-sync/1.0")

    # Sincronizacion
    SYNC_INTERVAL_HOURS: float = Field(default=24.0)
    SYNC_ON_STARTUP: bool = Field(default=True)
    # Delay corto para no bloquear el arranque de la aplicacion
    SYNC_STARTUP_DELAY_SECONDS: float = Field(default=1.0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Acepta postgres:// y postgresql:// (formato Heroku/Supabase)
        y los convierte al driver async.
        """
        url = self.DATABASE_URL
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def sync_interval(self) -> timedelta:
        return timedelta(hours=self.SYNC_INTERVAL_HOURS)

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuracion
settings = Settings()
