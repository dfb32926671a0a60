"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from gusto.api.routes import catalog, registration, selection

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(catalog.router)
api_router.include_router(selection.router)
api_router.include_router(registration.router)
