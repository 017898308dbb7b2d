"""
Pydantic schemas for promotion rules.

Condition and action documents are accepted as plain JSON objects here;
their grammar is checked by the rules service before anything is stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.rule import RULE_NAME_MAX_LENGTH, SALIENCE_MAX, SALIENCE_MIN


class RuleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=RULE_NAME_MAX_LENGTH)
    salience: int = Field(..., ge=SALIENCE_MIN, le=SALIENCE_MAX)
    stackable: bool
    condition_json: Dict[str, Any]
    action_json: Dict[str, Any]


class RuleCreate(RuleBase):
    is_active: bool = True


class RuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=RULE_NAME_MAX_LENGTH)
    salience: Optional[int] = Field(None, ge=SALIENCE_MIN, le=SALIENCE_MAX)
    stackable: Optional[bool] = None
    condition_json: Optional[Dict[str, Any]] = None
    action_json: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class RuleOut(BaseModel):
    id: int
    name: str
    salience: int
    stackable: bool
    is_active: bool
    condition: Dict[str, Any]
    action: Dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    priority_description: str
    type_description: str


class RuleDetailOut(RuleOut):
    formatted_condition: str
    formatted_action: str


class RuleSummary(BaseModel):
    total_rules: int
    active_rules: int
    inactive_rules: int
    stackable_rules: int
    exclusive_rules: int
    priority_distribution: Dict[str, int] = {}
    action_type_distribution: Dict[str, int] = {}
    average_salience: float = 0


class RuleListOut(BaseModel):
    items: List[RuleOut]
    total: int
    page: int
    page_size: int
    summary: RuleSummary
