from types import SimpleNamespace

from promo_rules.services.rule_render import (
    INVALID_ACTION,
    INVALID_CONDITION,
    INVALID_CONDITION_FORMAT,
    INVALID_TIERED_DISCOUNT,
    UNKNOWN_ACTION_TYPE,
    priority_description,
    render_action,
    render_condition,
    summarize_rules,
    type_description,
)


def test_render_leaf_uses_labels():
    assert render_condition({"field": "line.productId", "operator": "==", "value": 123}) == "Product ID equals 123"
    assert (
        render_condition({"field": "customer.email", "operator": "endsWith", "value": "@apple.com"})
        == 'Customer Email ends with "@apple.com"'
    )


def test_render_unknown_labels_fall_back_to_raw_tokens():
    assert render_condition({"field": "line.weight", "operator": "~", "value": 2}) == "line.weight ~ 2"


def test_render_nested_group():
    condition = {
        "operator": "AND",
        "conditions": [
            {"field": "line.productId", "operator": "==", "value": 123},
            {
                "operator": "OR",
                "conditions": [
                    {"field": "line.quantity", "operator": ">=", "value": 5},
                    {"field": "customer.loyaltyTier", "operator": "==", "value": "gold"},
                ],
            },
        ],
    }
    assert render_condition(condition) == (
        '(Product ID equals 123 and (Quantity greater than or equal 5 or Loyalty Tier equals "gold"))'
    )


def test_render_condition_sentinels():
    assert render_condition(None) == INVALID_CONDITION
    assert render_condition("x") == INVALID_CONDITION
    assert render_condition({"operator": "AND"}) == INVALID_CONDITION_FORMAT
    assert render_condition({"operator": "AND", "conditions": ["oops"]}) == f"({INVALID_CONDITION_FORMAT})"


def test_render_actions():
    assert render_action({"type": "applyPercent", "args": [20]}) == "Apply 20% discount"
    assert render_action({"type": "applyFreeUnits", "args": [1]}) == "Add 1 free unit(s)"
    assert render_action({"type": "applyFixedAmount", "args": [7.5]}) == "Apply 7.5 fixed discount"


def test_render_tiered_discount():
    action = {
        "type": "applyTieredDiscount",
        "tiers": [
            {"min_quantity": 5, "max_quantity": 9, "discount_percent": 5},
            {"min_quantity": 10, "discount_percent": 10},
        ],
    }
    assert render_action(action) == "Tiered discount: Qty 5-9: 5% off, Qty 10-∞: 10% off"


def test_render_action_sentinels():
    assert render_action(None) == INVALID_ACTION
    assert render_action({"args": [1]}) == INVALID_ACTION
    assert render_action({"type": "applyPercent"}) == INVALID_ACTION
    assert render_action({"type": "applyMagic"}) == UNKNOWN_ACTION_TYPE
    assert render_action({"type": "applyTieredDiscount", "tiers": []}) == INVALID_TIERED_DISCOUNT
    assert render_action({"type": "applyTieredDiscount", "tiers": ["x"]}) == INVALID_TIERED_DISCOUNT


def test_priority_and_type_descriptions():
    assert priority_description(0) == "Very High"
    assert priority_description(10) == "Very High"
    assert priority_description(11) == "High"
    assert priority_description(30) == "Medium"
    assert priority_description(40) == "Low"
    assert priority_description(41) == "Very Low"
    assert type_description(True) == "Stackable"
    assert type_description(False) == "Exclusive"


def test_summarize_rules():
    rows = [
        SimpleNamespace(is_active=True, stackable=True, salience=10, action_json={"type": "applyPercent"}),
        SimpleNamespace(is_active=False, stackable=False, salience=20, action_json={"type": "applyPercent"}),
        SimpleNamespace(is_active=True, stackable=True, salience=45, action_json={"type": "applyFreeUnits"}),
    ]
    summary = summarize_rules(rows)
    assert summary["total_rules"] == 3
    assert summary["active_rules"] == 2
    assert summary["inactive_rules"] == 1
    assert summary["stackable_rules"] == 2
    assert summary["exclusive_rules"] == 1
    assert summary["priority_distribution"] == {"very_high": 1, "high": 1, "very_low": 1}
    assert summary["action_type_distribution"] == {"applyPercent": 2, "applyFreeUnits": 1}
    assert summary["average_salience"] == 25


def test_summarize_empty():
    assert summarize_rules([])["average_salience"] == 0
