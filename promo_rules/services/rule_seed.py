"""
Auto-seed sample promotion rules for local and demo usage.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..models.rule import Rule
from .rules import create_rule

logger = logging.getLogger("rule_seed")


def _leaf(field: str, operator: str, value) -> dict:
    return {"field": field, "operator": operator, "value": value}


def _all_of(*conditions: dict) -> dict:
    return {"operator": "AND", "conditions": list(conditions)}


def _percent(value) -> dict:
    return {"type": "applyPercent", "args": [value]}


SAMPLE_RULES = [
    {
        "name": "Buy 5 Get 1 Free on SKU 123",
        "salience": 10,
        "stackable": False,
        "condition_json": _all_of(_leaf("line.productId", "==", 123), _leaf("line.quantity", ">=", 5)),
        "action_json": {"type": "applyFreeUnits", "args": [1]},
    },
    {
        "name": "Tiered Discount SKU 456",
        "salience": 20,
        "stackable": True,
        "condition_json": _all_of(_leaf("line.productId", "==", 456), _leaf("line.quantity", ">=", 5)),
        "action_json": {
            "type": "applyTieredDiscount",
            "tiers": [
                {"min_quantity": 5, "max_quantity": 9, "discount_percent": 5},
                {"min_quantity": 10, "max_quantity": None, "discount_percent": 10},
            ],
        },
    },
    {
        "name": "20% off Electronics",
        "salience": 15,
        "stackable": True,
        "condition_json": _leaf("line.categoryId", "==", 10),
        "action_json": _percent(20),
    },
    {
        "name": "10% off for Restaurants",
        "salience": 30,
        "stackable": True,
        "condition_json": _leaf("customer.type", "==", "restaurants"),
        "action_json": _percent(10),
    },
    {
        "name": "5% off apple.com Corporate",
        "salience": 25,
        "stackable": True,
        "condition_json": _leaf("customer.email", "endsWith", "@apple.com"),
        "action_json": _percent(5),
    },
    {
        "name": "Flash Sale SKU 789",
        "salience": 5,
        "stackable": False,
        "condition_json": _all_of(_leaf("line.productId", "==", 789), _leaf("now", "<", "2025-07-01T00:00:00Z")),
        "action_json": _percent(25),
    },
    {
        "name": "Clearance Category Obsolete",
        "salience": 40,
        "stackable": True,
        "condition_json": _leaf("line.categoryId", "==", 99),
        "action_json": _percent(50),
    },
    {
        "name": "Gold Tier Multiplier",
        "salience": 35,
        "stackable": True,
        "condition_json": _leaf("customer.loyaltyTier", "==", "gold"),
        "action_json": _percent(5),
    },
    {
        "name": "First Purchase SKU 555",
        "salience": 12,
        "stackable": True,
        "condition_json": _all_of(_leaf("line.productId", "==", 555), _leaf("customer.ordersCount", "==", 0)),
        "action_json": _percent(15),
    },
    {
        "name": "City Promo (Jeddah)",
        "salience": 18,
        "stackable": True,
        "condition_json": _leaf("customer.city", "==", "Jeddah"),
        "action_json": _percent(3),
    },
]


def seed_rules(db: Session) -> int:
    """Insert the sample rules when the table is empty. Returns the number created."""
    if db.query(Rule.id).first() is not None:
        return 0
    created = 0
    for data in SAMPLE_RULES:
        create_rule(db, dict(data))
        created += 1
    logger.info("Seeded sample rules count=%s", created)
    return created
