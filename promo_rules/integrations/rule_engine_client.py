"""HTTP client for the external rule engine that evaluates promotion rules."""

from __future__ import annotations

import logging

import requests

from ..core.config import settings
from ..core.errors import RuleEngineError, RuleEngineUnavailable

logger = logging.getLogger("rule_engine_client")


class RuleEngineClient:
    """Single-attempt client for the rule engine's evaluate endpoint."""

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self.base_url = (base_url or "").strip()
        self.timeout = timeout

    @property
    def evaluate_url(self) -> str:
        return self.base_url.rstrip("/") + "/evaluate"

    def evaluate(self, payload: dict) -> dict:
        if not self.base_url:
            raise RuleEngineUnavailable("Rule engine URL is not configured")
        try:
            response = requests.post(self.evaluate_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RuleEngineUnavailable(f"Rule engine request failed: {exc}") from exc

        if response.status_code // 100 != 2:
            body = response.text
            logger.error("Rule engine service failed status=%s response=%s", response.status_code, body[:500])
            raise RuleEngineUnavailable(
                f"Rule engine returned status {response.status_code}",
                status=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RuleEngineError(f"Rule engine response was not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise RuleEngineError("Rule engine response was not a JSON object")
        return data


def get_rule_engine_client() -> RuleEngineClient:
    return RuleEngineClient(settings.rule_engine_service_url, timeout=settings.rule_engine_timeout)
