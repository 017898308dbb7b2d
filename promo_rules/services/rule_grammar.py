"""
Grammar for promotion rule conditions and actions.

Rules carry two JSON documents: a condition tree (leaves comparing a line
or customer fact with a value, combined with AND/OR) and an action document
(one of four discount mechanisms). This module holds the registries both
documents are checked against, typed node classes, and strict decoders that
turn raw JSON into those nodes.

``parse_condition`` / ``parse_action`` raise :class:`GrammarError` carrying a
locator of the first offending node. ``validate_condition`` /
``validate_action`` collapse that into a boolean, which is all the rule
gate reports to clients.

Operator/value type coherence (e.g. ``endsWith`` against a number) is not
checked here; the external rule engine owns that.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Optional, Tuple, Union


CONDITION_FIELDS = frozenset(
    {
        "line.productId",
        "line.quantity",
        "line.categoryId",
        "line.unitPrice",
        "customer.type",
        "customer.email",
        "customer.loyaltyTier",
        "customer.ordersCount",
        "customer.city",
        "now",
    }
)

CONDITION_OPERATORS = frozenset({"==", "!=", ">", "<", ">=", "<=", "endsWith", "startsWith", "contains"})

COMBINATOR_OPERATORS = frozenset({"AND", "OR"})

APPLY_PERCENT = "applyPercent"
APPLY_FIXED_AMOUNT = "applyFixedAmount"
APPLY_FREE_UNITS = "applyFreeUnits"
APPLY_TIERED_DISCOUNT = "applyTieredDiscount"

ACTION_TYPES = frozenset({APPLY_PERCENT, APPLY_FIXED_AMOUNT, APPLY_FREE_UNITS, APPLY_TIERED_DISCOUNT})

FIELD_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "line.productId": "Product ID",
        "line.quantity": "Quantity",
        "line.categoryId": "Category ID",
        "line.unitPrice": "Unit Price",
        "customer.type": "Customer Type",
        "customer.email": "Customer Email",
        "customer.loyaltyTier": "Loyalty Tier",
        "customer.ordersCount": "Orders Count",
        "customer.city": "Customer City",
        "now": "Current Time",
    }
)

OPERATOR_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "==": "equals",
        "!=": "not equals",
        ">": "greater than",
        "<": "less than",
        ">=": "greater than or equal",
        "<=": "less than or equal",
        "endsWith": "ends with",
        "startsWith": "starts with",
        "contains": "contains",
    }
)


class CustomerType(str, Enum):
    RETAIL = "retail"
    RESTAURANTS = "restaurants"


class LoyaltyTier(str, Enum):
    NONE = "none"
    SILVER = "silver"
    GOLD = "gold"


class GrammarError(ValueError):
    """Raised by the strict decoders; ``path`` locates the failing node."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path or '<root>'}: {reason}")


# -----------------------------------------------------------------------------
# Typed nodes
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ConditionLeaf:
    field: str
    operator: str
    value: Any

    def to_dict(self) -> dict:
        return {"field": self.field, "operator": self.operator, "value": self.value}


@dataclass(frozen=True)
class ConditionGroup:
    operator: str
    conditions: Tuple["Condition", ...]

    def to_dict(self) -> dict:
        return {"operator": self.operator, "conditions": [c.to_dict() for c in self.conditions]}


Condition = Union[ConditionLeaf, ConditionGroup]


@dataclass(frozen=True)
class Tier:
    min_quantity: int
    discount_percent: float
    max_quantity: Optional[int] = None

    def to_dict(self) -> dict:
        data: dict = {"min_quantity": self.min_quantity}
        if self.max_quantity is not None:
            data["max_quantity"] = self.max_quantity
        data["discount_percent"] = self.discount_percent
        return data


@dataclass(frozen=True)
class PercentAction:
    type: ClassVar[str] = APPLY_PERCENT
    percent: float

    def to_dict(self) -> dict:
        return {"type": self.type, "args": [self.percent]}


@dataclass(frozen=True)
class FixedAmountAction:
    type: ClassVar[str] = APPLY_FIXED_AMOUNT
    amount: float

    def to_dict(self) -> dict:
        return {"type": self.type, "args": [self.amount]}


@dataclass(frozen=True)
class FreeUnitsAction:
    type: ClassVar[str] = APPLY_FREE_UNITS
    units: int

    def to_dict(self) -> dict:
        return {"type": self.type, "args": [self.units]}


@dataclass(frozen=True)
class TieredDiscountAction:
    type: ClassVar[str] = APPLY_TIERED_DISCOUNT
    tiers: Tuple[Tier, ...]

    def to_dict(self) -> dict:
        return {"type": self.type, "tiers": [t.to_dict() for t in self.tiers]}


Action = Union[PercentAction, FixedAmountAction, FreeUnitsAction, TieredDiscountAction]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def _as_number(value: Any) -> Optional[Union[int, float]]:
    """Numbers and numeric strings ("10", "2.5") as a finite number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not _NUMERIC_STRING.match(value):
            return None
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            value = float(text)
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def is_leaf_shape(node: Mapping[str, Any]) -> bool:
    """A leaf carries field, operator and a non-null value; extra keys are ignored."""
    return "field" in node and "operator" in node and node.get("value") is not None


# -----------------------------------------------------------------------------
# Conditions
# -----------------------------------------------------------------------------


def _parse_condition(raw: Any, path: str) -> Condition:
    if not isinstance(raw, Mapping):
        raise GrammarError(path, "condition must be an object")

    if is_leaf_shape(raw):
        field = raw["field"]
        operator = raw["operator"]
        if not isinstance(field, str) or field not in CONDITION_FIELDS:
            raise GrammarError(_join(path, "field"), "unknown field")
        if not isinstance(operator, str) or operator not in CONDITION_OPERATORS:
            raise GrammarError(_join(path, "operator"), "unknown operator")
        return ConditionLeaf(field=field, operator=operator, value=raw["value"])

    operator = raw.get("operator")
    conditions = raw.get("conditions")
    if "conditions" not in raw:
        raise GrammarError(path, "neither a leaf nor a combinator")
    if not isinstance(operator, str) or operator not in COMBINATOR_OPERATORS:
        raise GrammarError(_join(path, "operator"), "combinator must be AND or OR")
    if not isinstance(conditions, (list, tuple)):
        raise GrammarError(_join(path, "conditions"), "conditions must be a list")
    if not conditions:
        raise GrammarError(_join(path, "conditions"), "combinator needs at least one condition")

    children = tuple(
        _parse_condition(child, f"{_join(path, 'conditions')}[{idx}]") for idx, child in enumerate(conditions)
    )
    return ConditionGroup(operator=operator, conditions=children)


def parse_condition(raw: Any) -> Condition:
    """Decode a condition tree, raising GrammarError on the first bad node."""
    try:
        return _parse_condition(raw, "")
    except RecursionError:
        raise GrammarError("", "nesting too deep") from None


def validate_condition(raw: Any) -> bool:
    try:
        parse_condition(raw)
    except GrammarError:
        return False
    return True


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------


def _single_arg(raw: Mapping[str, Any]) -> Any:
    args = raw.get("args")
    if not isinstance(args, (list, tuple)) or len(args) != 1:
        raise GrammarError("args", "expected exactly one argument")
    return args[0]


def _parse_tier(raw: Any, path: str) -> Tier:
    if not isinstance(raw, Mapping):
        raise GrammarError(path, "tier must be an object")
    min_quantity = raw.get("min_quantity")
    discount_percent = _as_number(raw.get("discount_percent"))
    max_quantity = raw.get("max_quantity")
    if not _is_int(min_quantity) or min_quantity < 0:
        raise GrammarError(_join(path, "min_quantity"), "must be an integer >= 0")
    if discount_percent is None or not 0 < discount_percent <= 100:
        raise GrammarError(_join(path, "discount_percent"), "must be a number in (0, 100]")
    if max_quantity is not None and (not _is_int(max_quantity) or max_quantity <= min_quantity):
        raise GrammarError(_join(path, "max_quantity"), "must be an integer greater than min_quantity")
    return Tier(min_quantity=min_quantity, discount_percent=discount_percent, max_quantity=max_quantity)


def parse_action(raw: Any) -> Action:
    """Decode an action document, raising GrammarError on the first problem."""
    if not isinstance(raw, Mapping):
        raise GrammarError("", "action must be an object")
    action_type = raw.get("type")
    if not isinstance(action_type, str) or action_type not in ACTION_TYPES:
        raise GrammarError("type", "unknown action type")

    if action_type in (APPLY_PERCENT, APPLY_FIXED_AMOUNT):
        value = _as_number(_single_arg(raw))
        if value is None or value <= 0:
            raise GrammarError("args[0]", "must be a positive number")
        if action_type == APPLY_PERCENT:
            return PercentAction(percent=value)
        return FixedAmountAction(amount=value)

    if action_type == APPLY_FREE_UNITS:
        value = _single_arg(raw)
        if not _is_int(value) or value <= 0:
            raise GrammarError("args[0]", "must be a positive integer")
        return FreeUnitsAction(units=value)

    tiers = raw.get("tiers")
    if not isinstance(tiers, (list, tuple)) or not tiers:
        raise GrammarError("tiers", "must be a non-empty list")
    # Overlaps and gaps between tiers are left to the rule engine.
    return TieredDiscountAction(tiers=tuple(_parse_tier(tier, f"tiers[{idx}]") for idx, tier in enumerate(tiers)))


def validate_action(raw: Any) -> bool:
    try:
        parse_action(raw)
    except GrammarError:
        return False
    return True
