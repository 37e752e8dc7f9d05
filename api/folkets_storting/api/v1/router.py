"""
Router de la API v1 (montado bajo /api en main.py).
"""
from fastapi import APIRouter

from folkets_storting.api.v1.endpoints import sync


api_router = APIRouter(prefix="/v1")
api_router.include_router(sync.router)
