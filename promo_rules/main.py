"""
Entry point for the promotion rules backend.

This module creates the FastAPI application and includes all API routers.
Run with:

    uvicorn promo_rules.main:app --reload

"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from . import __version__
from .api import api_router
from .core.config import env_flag, get_app_env, settings
from .core.db import SessionLocal, engine
from .core.errors import log_exception
from .core.logging_config import resolve_level, setup_logging
from .models import Base
from .scripts.run_migrations import run_migrations_to_head
from .services.rule_seed import seed_rules


def create_app() -> FastAPI:
    setup_logging(resolve_level(settings.log_level))
    app = FastAPI(title="Promotion Rules API", version=__version__)
    app.include_router(api_router)

    @app.on_event("startup")
    def _init_db() -> None:
        logger = logging.getLogger("startup")
        env = get_app_env()
        if env_flag("AUTO_CREATE_DB"):
            try:
                Base.metadata.create_all(bind=engine)
            except Exception as exc:
                log_exception(logger, "DB create_all failed", exc=exc)
                if env == "prod":
                    raise
        if env_flag("AUTO_RUN_MIGRATIONS"):
            try:
                run_migrations_to_head()
            except Exception as exc:
                log_exception(logger, "DB migrations failed", exc=exc)
                if env == "prod":
                    raise
        if env_flag("AUTO_SEED_RULES"):
            try:
                with SessionLocal() as db:
                    seed_rules(db)
            except Exception as exc:
                log_exception(logger, "Seed rules failed", exc=exc)
                if env == "prod":
                    raise

    return app


app = create_app()
