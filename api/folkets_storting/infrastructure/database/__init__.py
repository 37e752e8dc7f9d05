"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from folkets_storting.infrastructure.database.models import (
    RepresentantModel,
    StortingetSakModel,
    SystemSettingsModel,
)
