"""
ORM model for promotion rules.

A rule pairs a condition tree with a discount action. ``salience`` is a
priority rank (lower fires first); ``stackable`` marks rules whose effect
may combine with other applied rules. Both JSON documents are validated by
the rules service before they are written.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from . import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


RULE_NAME_MAX_LENGTH = 150
SALIENCE_MIN = 0
SALIENCE_MAX = 999


class Rule(Base):
    __tablename__ = "rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(RULE_NAME_MAX_LENGTH), nullable=False, unique=True)
    salience: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    stackable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    condition_json: Mapped[dict] = mapped_column(JSONB, nullable=False)
    action_json: Mapped[dict] = mapped_column(JSONB, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now, onupdate=_utc_now)

    def __repr__(self) -> str:
        return f"<Rule id={self.id} name={self.name!r} salience={self.salience}>"
