import logging

import pytest

from promo_rules.core import errors


def test_log_exception_includes_context(caplog):
    logger = logging.getLogger("test_errors")
    caplog.set_level(logging.ERROR)

    errors.log_exception(
        logger,
        "Rule engine service request failed",
        extra={"url": "http://engine/api/evaluate", "status": None, "rule_count": 3},
        exc=errors.RuleEngineUnavailable("timeout"),
    )

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.message == "Rule engine service request failed url=http://engine/api/evaluate rule_count=3: timeout"
    assert record.exc_info is not None


def test_log_exception_without_exc_uses_active_exception(caplog):
    logger = logging.getLogger("test_errors")
    caplog.set_level(logging.ERROR)
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        errors.log_exception(logger, "Seed rules failed")

    assert any(rec.message == "Seed rules failed" and rec.exc_info for rec in caplog.records)


def test_error_status_codes():
    assert errors.InvalidRuleStructure("condition").status_code == 422
    assert str(errors.InvalidRuleStructure("action")) == "The rule action has an invalid structure."
    assert errors.RuleNameConflict("x").status_code == 409
    assert errors.RuleNotFound(1).status_code == 404
    assert errors.RuleEngineUnavailable("down").status_code == 503
    assert errors.RuleEngineError("bad").status_code == 502


def test_prod_refuses_open_auth(monkeypatch):
    from promo_rules.core import config

    monkeypatch.setenv("PROMO_ENV", "prod")
    monkeypatch.setenv("PROMO_AUTH_DISABLED", "true")
    with pytest.raises(RuntimeError):
        config.validate_runtime_settings()

    monkeypatch.setenv("PROMO_AUTH_DISABLED", "false")
    monkeypatch.setenv("PROMO_AUTH_TOKEN", "x" * 32)
    monkeypatch.setenv("PROMO_JWT_SECRET", "y" * 32)
    config.validate_runtime_settings()


def test_rule_engine_url_must_be_http(caplog):
    from promo_rules.core import config

    caplog.set_level(logging.ERROR)
    config.validate_runtime_settings(config.Settings(rule_engine_service_url="ftp://engine"))
    assert any("must be an http(s) URL" in rec.message for rec in caplog.records)
