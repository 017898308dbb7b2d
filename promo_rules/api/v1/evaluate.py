"""
Rule evaluation endpoint. The external rule engine does the work; this
router validates the facts and relays the engine's answer.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...core.db import get_db
from ...core.errors import RuleEngineError, RuleEngineUnavailable
from ...schemas.evaluation import EvaluateRequest
from ...services.evaluation import applied_count, evaluate_rules


router = APIRouter(prefix="/api/v1/evaluate", tags=["evaluation"])

UNAVAILABLE_DETAIL = "Rule evaluation service temporarily unavailable"


@router.post("")
def evaluate(payload: EvaluateRequest, db: Session = Depends(get_db)) -> dict:
    try:
        result = evaluate_rules(db, payload.line_facts(), payload.customer_facts())
    except RuleEngineUnavailable as exc:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL) from exc
    except RuleEngineError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {
        "evaluation_result": result,
        "meta": {
            "evaluated_at": datetime.now(timezone.utc).isoformat(),
            "rules_processed": applied_count(result),
            "evaluation_options": payload.options.model_dump(by_alias=True),
        },
    }
