"""
ORM models for the promotion rules backend.

Condition and action documents are JSONB columns. SQLite (local runs and
tests) has no JSONB, so the type is compiled as plain JSON there.
"""

from __future__ import annotations

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


@compiles(JSONB, "sqlite")
def _jsonb_as_sqlite_json(type_, compiler, **kw):
    return compiler.process(JSON(), **kw)


from .rule import Rule  # noqa: E402,F401

__all__ = ["Base", "Rule"]
