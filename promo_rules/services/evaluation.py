"""
Delegation of rule evaluation to the external rule engine.

The engine receives the line item, the customer and every active rule, and
returns the applied rules and totals. That response is handed back as-is;
nothing here computes or approximates a discount.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.errors import RuleServiceError, log_exception
from ..integrations.rule_engine_client import RuleEngineClient, get_rule_engine_client
from ..models.rule import Rule
from .rules import list_active_rules

logger = logging.getLogger("evaluation")


def serialize_rule_for_engine(rule: Rule) -> dict:
    return {
        "id": rule.id,
        "name": rule.name,
        "salience": rule.salience,
        "stackable": rule.stackable,
        "condition": rule.condition_json,
        "action": rule.action_json,
    }


def build_evaluation_payload(line: dict, customer: dict, rules: list[Rule]) -> dict:
    return {
        "line": line,
        "customer": customer,
        "rules": [serialize_rule_for_engine(rule) for rule in rules],
    }


def applied_count(result: dict) -> int:
    applied = result.get("applied")
    return len(applied) if isinstance(applied, list) else 0


def evaluate_rules(
    db: Session,
    line: dict,
    customer: dict,
    *,
    client: Optional[RuleEngineClient] = None,
) -> dict:
    # Evaluation options (includeInactive, maxRules) are accepted by the API
    # but every active rule is sent regardless.
    logger.info("Starting rule evaluation product_id=%s customer_type=%s", line.get("productId"), customer.get("type"))
    rules = list_active_rules(db)
    logger.info("Retrieved rules for evaluation rule_count=%s", len(rules))
    payload = build_evaluation_payload(line, customer, rules)
    engine = client or get_rule_engine_client()
    try:
        result = engine.evaluate(payload)
    except RuleServiceError as exc:
        log_exception(
            logger,
            "Rule engine service request failed",
            extra={"url": engine.evaluate_url, "rule_count": len(rules)},
            exc=exc,
        )
        raise
    except Exception as exc:
        log_exception(logger, "Rule evaluation failed", extra={"product_id": line.get("productId")}, exc=exc)
        raise

    logger.info(
        "Rule evaluation completed applied_rules_count=%s total_discount=%s final_total=%s",
        applied_count(result),
        result.get("totalDiscount", 0),
        result.get("finalLineTotal", 0),
    )
    return result
