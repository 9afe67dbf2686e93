"""
Router principal de la API v1.
"""
from fastapi import APIRouter

from pms_sync.api.v1.endpoints import pms_sync


# Router principal de la API v1
api_router = APIRouter(prefix="/v1")

api_router.include_router(pms_sync.router)
