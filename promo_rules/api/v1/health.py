"""
Health and API information endpoints. Both stay public when auth is on.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ... import __version__
from ...core.config import settings
from ...core.db import get_db
from ...core.errors import log_exception
from ...services.rules import list_active_rules


router = APIRouter(prefix="/api/v1", tags=["health"])

logger = logging.getLogger("health")

ENDPOINTS = {
    "rules": {
        "GET /api/v1/rules": "List all rules",
        "POST /api/v1/rules": "Create a new rule",
        "GET /api/v1/rules/{id}": "Get a specific rule",
        "PUT /api/v1/rules/{id}": "Update a rule",
        "DELETE /api/v1/rules/{id}": "Delete a rule",
        "PATCH /api/v1/rules/{id}/toggle-status": "Toggle rule active status",
    },
    "evaluation": {
        "POST /api/v1/evaluate": "Evaluate rules against line and customer data",
    },
    "system": {
        "GET /api/v1/health": "Health check endpoint",
        "GET /api/v1/info": "API information",
    },
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        active = len(list_active_rules(db))
    except Exception as exc:
        log_exception(logger, "Health check failed", exc=exc)
        return JSONResponse(
            status_code=503,
            content={"service_status": "unhealthy", "error": str(exc), "last_check": _now_iso()},
        )
    return {
        "service_status": "healthy",
        "active_rules_count": active,
        "rule_engine_url": settings.rule_engine_service_url,
        "last_check": _now_iso(),
    }


@router.get("/info")
def info() -> dict:
    return {
        "name": "Promotion Rules API",
        "version": __version__,
        "description": "Promotion rules management with delegated evaluation",
        "endpoints": ENDPOINTS,
        "timestamp": _now_iso(),
    }
