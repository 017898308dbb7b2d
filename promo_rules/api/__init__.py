"""
API package for the promotion rules backend.

This package aggregates all API routers to be included in the FastAPI
application. The API is versioned under ``/api/v1``.
"""

from fastapi import APIRouter, Depends

from .v1.evaluate import router as evaluate_router
from .v1.health import router as health_router
from .v1.rules import router as rules_router
from ..core.auth import get_current_user

api_router = APIRouter()
protected = [Depends(get_current_user)]
api_router.include_router(health_router)
api_router.include_router(rules_router, dependencies=protected)
api_router.include_router(evaluate_router, dependencies=protected)
