"""
Rule services: record store queries and the structure gate guarding writes.

Every create, and every update that touches the condition or the action,
re-validates the effective pair of JSON documents so a stored rule never
holds a condition/action combination that fails the grammar. Name
uniqueness is checked up front and backed by the table's unique
constraint for concurrent writers.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from ..core.errors import InvalidRuleStructure, RuleNameConflict, RuleNotFound
from ..models.rule import Rule
from .rule_grammar import GrammarError, parse_action, parse_condition

logger = logging.getLogger("rules")

RULE_FIELDS = ("name", "salience", "stackable", "condition_json", "action_json", "is_active")


def validate_rule_structure(condition: Any, action: Any) -> tuple[dict, dict]:
    """
    Decode both documents and return them in their stored form.

    Numeric strings become numbers and keys outside the grammar are dropped.
    Raises InvalidRuleStructure naming the part that failed; the node path
    is only logged.
    """
    try:
        condition_node = parse_condition(condition)
    except GrammarError as exc:
        logger.warning("Invalid condition structure path=%s reason=%s", exc.path or "<root>", exc.reason)
        raise InvalidRuleStructure("condition") from exc
    try:
        action_node = parse_action(action)
    except GrammarError as exc:
        logger.warning("Invalid action structure path=%s reason=%s", exc.path or "<root>", exc.reason)
        raise InvalidRuleStructure("action") from exc
    return condition_node.to_dict(), action_node.to_dict()


# -----------------------------------------------------------------------------
# Queries
# -----------------------------------------------------------------------------


def rule_query(
    db: Session,
    *,
    is_active: Optional[bool] = None,
    stackable: Optional[bool] = None,
    search: Optional[str] = None,
    salience_min: Optional[int] = None,
    salience_max: Optional[int] = None,
) -> Query:
    query = db.query(Rule)
    if is_active is not None:
        query = query.filter(Rule.is_active == is_active)
    if stackable is not None:
        query = query.filter(Rule.stackable == stackable)
    if search:
        query = query.filter(func.lower(Rule.name).contains(search.lower(), autoescape=True))
    if salience_min is not None:
        query = query.filter(Rule.salience >= salience_min)
    if salience_max is not None:
        query = query.filter(Rule.salience <= salience_max)
    return query.order_by(Rule.salience.asc(), Rule.id.asc())


def list_rules(db: Session, **filters: Any) -> list[Rule]:
    """Rules matching the filters, lowest salience first."""
    logger.info("Fetching rules filters=%s", {k: v for k, v in filters.items() if v is not None})
    return rule_query(db, **filters).all()


def list_active_rules(db: Session) -> list[Rule]:
    return rule_query(db, is_active=True).all()


def get_rule(db: Session, rule_id: int) -> Optional[Rule]:
    rule = db.get(Rule, rule_id)
    if rule is None:
        logger.warning("Rule not found rule_id=%s", rule_id)
    return rule


def require_rule(db: Session, rule_id: int) -> Rule:
    rule = get_rule(db, rule_id)
    if rule is None:
        raise RuleNotFound(rule_id)
    return rule


def find_rule_by_name(db: Session, name: str, *, exclude_id: Optional[int] = None) -> Optional[Rule]:
    query = db.query(Rule).filter(Rule.name == name)
    if exclude_id is not None:
        query = query.filter(Rule.id != exclude_id)
    return query.first()


# -----------------------------------------------------------------------------
# Writes
# -----------------------------------------------------------------------------


def _ensure_unique_name(db: Session, name: str, *, exclude_id: Optional[int] = None) -> None:
    if find_rule_by_name(db, name, exclude_id=exclude_id) is not None:
        logger.info("Rule name conflict name=%s", name)
        raise RuleNameConflict(name)


def _commit(db: Session, rule: Rule, name: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Lost a race on the unique name constraint.
        if find_rule_by_name(db, name, exclude_id=rule.id) is not None:
            raise RuleNameConflict(name) from exc
        raise
    db.refresh(rule)


def create_rule(db: Session, data: dict) -> Rule:
    name = data["name"]
    logger.info("Creating rule name=%s", name)
    condition_json, action_json = validate_rule_structure(data.get("condition_json"), data.get("action_json"))
    _ensure_unique_name(db, name)
    is_active = data.get("is_active")
    rule = Rule(
        name=name,
        salience=data["salience"],
        stackable=data["stackable"],
        condition_json=condition_json,
        action_json=action_json,
        is_active=True if is_active is None else is_active,
    )
    db.add(rule)
    _commit(db, rule, name)
    logger.info("Rule created rule_id=%s name=%s", rule.id, rule.name)
    return rule


def update_rule(db: Session, rule_id: int, data: dict) -> Rule:
    """Partial update; keys that are absent or null leave the stored value alone."""
    logger.info("Updating rule rule_id=%s", rule_id)
    rule = require_rule(db, rule_id)
    updates = {key: data[key] for key in RULE_FIELDS if data.get(key) is not None}

    if "condition_json" in updates or "action_json" in updates:
        condition_json, action_json = validate_rule_structure(
            updates.get("condition_json", rule.condition_json),
            updates.get("action_json", rule.action_json),
        )
        # Only the supplied documents are rewritten.
        if "condition_json" in updates:
            updates["condition_json"] = condition_json
        if "action_json" in updates:
            updates["action_json"] = action_json
    if "name" in updates and updates["name"] != rule.name:
        _ensure_unique_name(db, updates["name"], exclude_id=rule.id)

    for key, value in updates.items():
        setattr(rule, key, value)
    db.add(rule)
    _commit(db, rule, updates.get("name", rule.name))
    logger.info("Rule updated rule_id=%s fields=%s", rule_id, sorted(updates))
    return rule


def toggle_rule_status(db: Session, rule_id: int) -> Rule:
    """Flip ``is_active``. The stored condition/action are not re-validated."""
    rule = require_rule(db, rule_id)
    old_status = rule.is_active
    rule.is_active = not old_status
    db.add(rule)
    db.commit()
    db.refresh(rule)
    logger.info("Rule status toggled rule_id=%s old_status=%s new_status=%s", rule_id, old_status, rule.is_active)
    return rule


def delete_rule(db: Session, rule_id: int) -> bool:
    logger.info("Deleting rule rule_id=%s", rule_id)
    rule = require_rule(db, rule_id)
    db.delete(rule)
    db.commit()
    logger.info("Rule deleted rule_id=%s", rule_id)
    return True
