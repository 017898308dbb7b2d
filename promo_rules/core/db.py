"""
Database session management for the promotion rules backend.

Rules live in a single table; the engine is built from ``settings.database_url``
(PostgreSQL in deployments, SQLite for local runs and tests). ``get_db`` is the
FastAPI dependency.
"""

from __future__ import annotations

import os
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import settings


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def engine_options(database_url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": False, "future": True, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # Request handlers run in a threadpool.
        options["connect_args"] = {"check_same_thread": False}
        return options
    options.update(
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        pool_recycle=_env_int("DB_POOL_RECYCLE_SEC", 1800),
        pool_timeout=_env_int("DB_POOL_TIMEOUT_SEC", 30),
    )
    return options


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db():
    """Yield a database session for FastAPI dependencies."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

