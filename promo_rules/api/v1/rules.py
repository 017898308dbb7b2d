"""
API endpoints for managing promotion rules.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ...core.auth import ADMIN_ROLE, require_roles
from ...core.db import get_db
from ...core.errors import RuleServiceError
from ...core.pagination import DEFAULT_PAGE_SIZE, page_window, set_pagination_headers
from ...models.rule import Rule
from ...schemas.rule import RuleCreate, RuleDetailOut, RuleListOut, RuleOut, RuleUpdate
from ...services import rules as rule_service
from ...services.rule_render import (
    priority_description,
    render_action,
    render_condition,
    summarize_rules,
    type_description,
)


router = APIRouter(prefix="/api/v1/rules", tags=["rules"])

admin_only = require_roles(ADMIN_ROLE)


def _http_error(exc: RuleServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


def _to_rule_out(rule: Rule, *, detail: bool = False) -> RuleOut:
    payload = {
        "id": rule.id,
        "name": rule.name,
        "salience": rule.salience,
        "stackable": rule.stackable,
        "is_active": rule.is_active,
        "condition": rule.condition_json,
        "action": rule.action_json,
        "created_at": rule.created_at,
        "updated_at": rule.updated_at,
        "priority_description": priority_description(rule.salience),
        "type_description": type_description(rule.stackable),
    }
    if not detail:
        return RuleOut.model_validate(payload)
    payload["formatted_condition"] = render_condition(rule.condition_json)
    payload["formatted_action"] = render_action(rule.action_json)
    return RuleDetailOut.model_validate(payload)


@router.get("", response_model=RuleListOut)
def list_rules(
    response: Response,
    is_active: Optional[bool] = Query(None),
    stackable: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=150),
    salience_min: Optional[int] = Query(None, ge=0),
    salience_max: Optional[int] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
) -> dict:
    rows = rule_service.list_rules(
        db,
        is_active=is_active,
        stackable=stackable,
        search=search,
        salience_min=salience_min,
        salience_max=salience_max,
    )
    window = page_window(page, page_size)
    set_pagination_headers(response, window, len(rows))
    return {
        "items": [_to_rule_out(r) for r in window.slice(rows)],
        "total": len(rows),
        "page": window.page,
        "page_size": window.size,
        "summary": summarize_rules(rows),
    }


@router.post("", response_model=RuleOut, status_code=201)
def create_rule(
    payload: RuleCreate,
    db: Session = Depends(get_db),
    _user=Depends(admin_only),
) -> RuleOut:
    try:
        rule = rule_service.create_rule(db, payload.model_dump())
    except RuleServiceError as exc:
        raise _http_error(exc) from exc
    return _to_rule_out(rule)


@router.get("/{rule_id}", response_model=RuleDetailOut)
def get_rule(rule_id: int, db: Session = Depends(get_db)) -> RuleOut:
    try:
        rule = rule_service.require_rule(db, rule_id)
    except RuleServiceError as exc:
        raise _http_error(exc) from exc
    return _to_rule_out(rule, detail=True)


@router.put("/{rule_id}", response_model=RuleOut)
def update_rule(
    rule_id: int,
    payload: RuleUpdate,
    db: Session = Depends(get_db),
    _user=Depends(admin_only),
) -> RuleOut:
    try:
        rule = rule_service.update_rule(db, rule_id, payload.model_dump(exclude_unset=True))
    except RuleServiceError as exc:
        raise _http_error(exc) from exc
    return _to_rule_out(rule)


@router.delete("/{rule_id}")
def delete_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    _user=Depends(admin_only),
) -> dict:
    try:
        rule_service.delete_rule(db, rule_id)
    except RuleServiceError as exc:
        raise _http_error(exc) from exc
    return {"status": "deleted", "id": rule_id}


@router.patch("/{rule_id}/toggle-status", response_model=RuleOut)
def toggle_rule_status(
    rule_id: int,
    db: Session = Depends(get_db),
    _user=Depends(admin_only),
) -> RuleOut:
    try:
        rule = rule_service.toggle_rule_status(db, rule_id)
    except RuleServiceError as exc:
        raise _http_error(exc) from exc
    return _to_rule_out(rule)
