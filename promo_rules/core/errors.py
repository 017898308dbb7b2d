"""
Error types and logging helpers shared by the rules services.

Service functions raise the typed errors below; the API layer maps them to
HTTP status codes. Nothing in the services retries or substitutes a result.
"""

from __future__ import annotations

import logging


class RuleServiceError(Exception):
    """Base class for errors raised by the rules services."""

    status_code = 500


class InvalidRuleStructure(RuleServiceError):
    """Condition or action JSON failed grammar validation."""

    status_code = 422

    def __init__(self, part: str) -> None:
        self.part = part
        super().__init__(f"The rule {part} has an invalid structure.")


class RuleNameConflict(RuleServiceError):
    status_code = 409

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("A rule with this name already exists.")


class RuleNotFound(RuleServiceError):
    status_code = 404

    def __init__(self, rule_id: int) -> None:
        self.rule_id = rule_id
        super().__init__("Rule not found")


class RuleEngineUnavailable(RuleServiceError):
    """Transport failure, timeout or non-2xx answer from the rule engine."""

    status_code = 503

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message)


class RuleEngineError(RuleServiceError):
    """The rule engine answered 2xx but the payload is unusable."""

    status_code = 502


def _format_extra(extra: dict | None) -> str:
    if not extra:
        return ""
    parts: list[str] = []
    for key, value in extra.items():
        if value is None:
            continue
        parts.append(f"{key}={value}")
    return f" {' '.join(parts)}" if parts else ""


def log_exception(logger: logging.Logger, msg: str, *, extra: dict | None = None, exc: Exception | None = None) -> None:
    """
    Log an exception with context. Uses logger.exception for stack traces.
    """
    suffix = _format_extra(extra)
    if exc is not None:
        logger.error(f"{msg}{suffix}: {exc}", exc_info=exc)
        return
    logger.exception(f"{msg}{suffix}")
