import pytest

from promo_rules.services.rule_grammar import (
    ConditionGroup,
    ConditionLeaf,
    GrammarError,
    PercentAction,
    TieredDiscountAction,
    parse_action,
    parse_condition,
    validate_action,
    validate_condition,
)


def _leaf(field="line.quantity", operator=">=", value=5):
    return {"field": field, "operator": operator, "value": value}


def test_leaf_condition_valid():
    assert validate_condition(_leaf()) is True
    node = parse_condition(_leaf("customer.email", "endsWith", "@apple.com"))
    assert node == ConditionLeaf(field="customer.email", operator="endsWith", value="@apple.com")


def test_leaf_tolerates_extra_keys():
    assert validate_condition({**_leaf(), "note": "ignored"}) is True


def test_every_registered_field_and_operator_accepted():
    fields = [
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
    ]
    operators = ["==", "!=", ">", "<", ">=", "<=", "endsWith", "startsWith", "contains"]
    for field in fields:
        assert validate_condition(_leaf(field=field)) is True
    for operator in operators:
        assert validate_condition(_leaf(operator=operator)) is True


def test_unknown_field_or_operator_rejected():
    assert validate_condition(_leaf(field="line.discount")) is False
    assert validate_condition(_leaf(operator="=~")) is False
    assert validate_condition(_leaf(operator="AND")) is False


def test_null_value_is_not_a_leaf():
    assert validate_condition(_leaf(value=None)) is False


def test_nested_combinators_valid():
    condition = {
        "operator": "OR",
        "conditions": [
            {"operator": "AND", "conditions": [_leaf("line.productId", "==", 123), _leaf()]},
            _leaf("customer.type", "==", "restaurants"),
        ],
    }
    node = parse_condition(condition)
    assert isinstance(node, ConditionGroup)
    assert node.operator == "OR"
    assert isinstance(node.conditions[0], ConditionGroup)
    assert node.to_dict() == condition


def test_combinator_errors_carry_path():
    bad = {"operator": "AND", "conditions": [_leaf(), _leaf(field="bogus")]}
    with pytest.raises(GrammarError) as excinfo:
        parse_condition(bad)
    assert excinfo.value.path == "conditions[1].field"
    assert validate_condition(bad) is False


def test_xor_and_non_list_conditions_rejected():
    assert validate_condition({"operator": "XOR", "conditions": [_leaf()]}) is False
    assert validate_condition({"operator": "AND", "conditions": _leaf()}) is False
    assert validate_condition({"operator": "AND", "conditions": []}) is False


def test_non_mapping_conditions_rejected():
    assert validate_condition(None) is False
    assert validate_condition([]) is False
    assert validate_condition("line.quantity >= 5") is False
    assert validate_condition({}) is False


def test_excessive_nesting_is_invalid():
    node = _leaf()
    for _ in range(5000):
        node = {"operator": "AND", "conditions": [node]}
    assert validate_condition(node) is False


def test_percent_and_fixed_actions():
    assert parse_action({"type": "applyPercent", "args": [20]}) == PercentAction(percent=20)
    assert validate_action({"type": "applyFixedAmount", "args": [12.5]}) is True
    assert validate_action({"type": "applyPercent", "args": [0]}) is False
    assert validate_action({"type": "applyPercent", "args": [-5]}) is False
    assert validate_action({"type": "applyPercent", "args": ["abc"]}) is False
    assert validate_action({"type": "applyPercent", "args": ["0"]}) is False
    assert validate_action({"type": "applyPercent", "args": [True]}) is False
    assert validate_action({"type": "applyPercent", "args": [10, 20]}) is False
    assert validate_action({"type": "applyPercent"}) is False


def test_free_units_require_positive_integer():
    assert validate_action({"type": "applyFreeUnits", "args": [1]}) is True
    assert validate_action({"type": "applyFreeUnits", "args": [1.5]}) is False
    assert validate_action({"type": "applyFreeUnits", "args": [0]}) is False


def test_tiered_discount():
    action = {
        "type": "applyTieredDiscount",
        "tiers": [
            {"min_quantity": 5, "max_quantity": 9, "discount_percent": 5},
            {"min_quantity": 10, "discount_percent": 10},
        ],
    }
    parsed = parse_action(action)
    assert isinstance(parsed, TieredDiscountAction)
    assert parsed.tiers[1].max_quantity is None
    assert validate_action(action) is True


def test_tiered_discount_bounds():
    def tiered(**tier):
        return {"type": "applyTieredDiscount", "tiers": [tier]}

    assert validate_action(tiered(min_quantity=0, discount_percent=100)) is True
    assert validate_action(tiered(min_quantity=5, max_quantity=None, discount_percent=10)) is True
    assert validate_action(tiered(min_quantity=-1, discount_percent=10)) is False
    assert validate_action(tiered(min_quantity=5, discount_percent=0)) is False
    assert validate_action(tiered(min_quantity=5, discount_percent=101)) is False
    assert validate_action(tiered(min_quantity=5, max_quantity=5, discount_percent=10)) is False
    assert validate_action(tiered(min_quantity=5.5, discount_percent=10)) is False
    assert validate_action({"type": "applyTieredDiscount", "tiers": []}) is False
    assert validate_action({"type": "applyTieredDiscount"}) is False


def test_unknown_or_missing_action_type():
    assert validate_action({"type": "applyMagic", "args": [1]}) is False
    assert validate_action({"args": [1]}) is False
    assert validate_action({}) is False
    assert validate_action(None) is False


def test_numeric_strings_accepted_where_numbers_are_allowed():
    assert parse_action({"type": "applyPercent", "args": ["10"]}) == PercentAction(percent=10)
    assert validate_action({"type": "applyFixedAmount", "args": ["2.5"]}) is True
    tiered = {"type": "applyTieredDiscount", "tiers": [{"min_quantity": 5, "discount_percent": "5"}]}
    assert parse_action(tiered).tiers[0].discount_percent == 5
    assert validate_action({"type": "applyTieredDiscount", "tiers": [{"min_quantity": 5, "discount_percent": "101"}]}) is False
    assert validate_action({"type": "applyFixedAmount", "args": ["1e999"]}) is False
    assert validate_action({"type": "applyFixedAmount", "args": [""]}) is False


def test_integer_slots_stay_strict_about_strings():
    assert validate_action({"type": "applyFreeUnits", "args": ["1"]}) is False
    tiered = {"type": "applyTieredDiscount", "tiers": [{"min_quantity": "5", "discount_percent": 5}]}
    assert validate_action(tiered) is False
