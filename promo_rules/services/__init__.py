"""
Service layer for the promotion rules backend.

This package contains the condition/action grammar, the rule store and
structure gate, rule rendering, and delegation of evaluation to the
external rule engine.
"""

from .rule_grammar import validate_action, validate_condition
from .rule_render import render_action, render_condition

__all__ = ["validate_condition", "validate_action", "render_condition", "render_action"]
