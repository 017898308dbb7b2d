"""
Pydantic schemas for rule evaluation requests.

Field names follow the rule engine's camelCase contract; Python attributes
are snake_case with aliases.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..services.rule_grammar import CustomerType, LoyaltyTier

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LineItemIn(BaseModel):
    product_id: int = Field(..., alias="productId")
    quantity: int = Field(..., ge=1, le=9999)
    unit_price: float = Field(..., alias="unitPrice", ge=0.01)
    category_id: Optional[int] = Field(None, alias="categoryId")

    model_config = ConfigDict(populate_by_name=True)


class CustomerIn(BaseModel):
    email: str = Field(..., max_length=150, pattern=EMAIL_PATTERN)
    type: CustomerType
    loyalty_tier: LoyaltyTier = Field(LoyaltyTier.NONE, alias="loyaltyTier")
    orders_count: int = Field(0, alias="ordersCount", ge=0)
    city: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(populate_by_name=True)


class EvaluationOptions(BaseModel):
    include_inactive: bool = Field(False, alias="includeInactive")
    max_rules: int = Field(50, alias="maxRules", ge=1, le=100)

    model_config = ConfigDict(populate_by_name=True)


class EvaluateRequest(BaseModel):
    line: LineItemIn
    customer: CustomerIn
    options: EvaluationOptions = Field(default_factory=EvaluationOptions)

    def line_facts(self) -> dict:
        return self.line.model_dump(mode="json", by_alias=True, exclude_none=True)

    def customer_facts(self) -> dict:
        return self.customer.model_dump(mode="json", by_alias=True, exclude_none=True)
