"""
Human-readable rendering of rule conditions and actions, plus the salience
priority buckets used in rule listings.

Rendering works on the stored JSON directly and never raises: rules that
were persisted before a grammar change (or edited by hand) still get a
best-effort description, with fixed sentinel strings for shapes that cannot
be described.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from .rule_grammar import (
    APPLY_FIXED_AMOUNT,
    APPLY_FREE_UNITS,
    APPLY_PERCENT,
    APPLY_TIERED_DISCOUNT,
    FIELD_LABELS,
    OPERATOR_LABELS,
    is_leaf_shape,
)


INVALID_CONDITION = "Invalid condition"
INVALID_CONDITION_FORMAT = "Invalid condition format"
INVALID_ACTION = "Invalid action"
UNKNOWN_ACTION_TYPE = "Unknown action type"
INVALID_TIERED_DISCOUNT = "Invalid tiered discount"
OPEN_ENDED = "∞"

_SINGLE_ARG_TEMPLATES = {
    APPLY_PERCENT: "Apply {}% discount",
    APPLY_FIXED_AMOUNT: "Apply {} fixed discount",
    APPLY_FREE_UNITS: "Add {} free unit(s)",
}

# Upper salience bound (inclusive) per bucket; anything above falls in very_low.
PRIORITY_THRESHOLDS = (
    (10, "very_high"),
    (20, "high"),
    (30, "medium"),
    (40, "low"),
)
LOWEST_PRIORITY = "very_low"

PRIORITY_LABELS = {
    "very_high": "Very High",
    "high": "High",
    "medium": "Medium",
    "low": "Low",
    "very_low": "Very Low",
}


def _plain(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def format_value(value: Any) -> str:
    """Strings are quoted; everything else uses its literal form."""
    if isinstance(value, str):
        return f'"{value}"'
    return _plain(value)


def _label(labels: Mapping[str, str], key: Any) -> str:
    if isinstance(key, str):
        return labels.get(key, key)
    return _plain(key)


def _render_node(node: Any) -> str:
    if not isinstance(node, Mapping):
        return INVALID_CONDITION_FORMAT
    if is_leaf_shape(node):
        field = _label(FIELD_LABELS, node["field"])
        operator = _label(OPERATOR_LABELS, node["operator"])
        return f"{field} {operator} {format_value(node['value'])}"
    operator = node.get("operator")
    conditions = node.get("conditions")
    if isinstance(operator, str) and isinstance(conditions, (list, tuple)):
        joiner = f" {operator.lower()} "
        return "(" + joiner.join(_render_node(sub) for sub in conditions) + ")"
    return INVALID_CONDITION_FORMAT


def render_condition(condition: Any) -> str:
    if not isinstance(condition, Mapping):
        return INVALID_CONDITION
    try:
        return _render_node(condition)
    except RecursionError:
        return INVALID_CONDITION_FORMAT


def _render_tier(tier: Any) -> str:
    if not isinstance(tier, Mapping):
        raise ValueError("tier is not an object")
    upper = tier.get("max_quantity")
    max_label = OPEN_ENDED if upper is None else _plain(upper)
    return f"Qty {_plain(tier.get('min_quantity'))}-{max_label}: {_plain(tier.get('discount_percent'))}% off"


def _render_tiers(tiers: Any) -> str:
    if not isinstance(tiers, (list, tuple)) or not tiers:
        return INVALID_TIERED_DISCOUNT
    try:
        parts = [_render_tier(tier) for tier in tiers]
    except ValueError:
        return INVALID_TIERED_DISCOUNT
    return "Tiered discount: " + ", ".join(parts)


def render_action(action: Any) -> str:
    if not isinstance(action, Mapping) or action.get("type") is None:
        return INVALID_ACTION
    action_type = action["type"]
    if not isinstance(action_type, str):
        return UNKNOWN_ACTION_TYPE
    template = _SINGLE_ARG_TEMPLATES.get(action_type)
    if template is not None:
        args = action.get("args")
        if not isinstance(args, (list, tuple)) or not args:
            return INVALID_ACTION
        return template.format(_plain(args[0]))
    if action_type == APPLY_TIERED_DISCOUNT:
        return _render_tiers(action.get("tiers"))
    return UNKNOWN_ACTION_TYPE


def priority_bucket(salience: int) -> str:
    for upper, bucket in PRIORITY_THRESHOLDS:
        if salience <= upper:
            return bucket
    return LOWEST_PRIORITY


def priority_description(salience: int) -> str:
    return PRIORITY_LABELS[priority_bucket(salience)]


def type_description(stackable: bool) -> str:
    return "Stackable" if stackable else "Exclusive"


def _action_type_of(action: Any) -> str:
    if isinstance(action, Mapping):
        action_type = action.get("type")
        if isinstance(action_type, str) and action_type:
            return action_type
    return "unknown"


def summarize_rules(rules: Iterable[Any]) -> dict:
    """Aggregate counts over rule rows (anything with the Rule attributes)."""
    rows = list(rules)
    total = len(rows)
    active = sum(1 for r in rows if r.is_active)
    stackable = sum(1 for r in rows if r.stackable)
    priorities: dict[str, int] = {}
    action_types: dict[str, int] = {}
    for r in rows:
        bucket = priority_bucket(r.salience)
        priorities[bucket] = priorities.get(bucket, 0) + 1
        kind = _action_type_of(r.action_json)
        action_types[kind] = action_types.get(kind, 0) + 1
    average = round(sum(r.salience for r in rows) / total, 2) if total else 0
    return {
        "total_rules": total,
        "active_rules": active,
        "inactive_rules": total - active,
        "stackable_rules": stackable,
        "exclusive_rules": total - stackable,
        "priority_distribution": priorities,
        "action_type_distribution": action_types,
        "average_salience": average,
    }
