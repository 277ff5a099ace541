"""
Discount Code Domain

Discount code model plus the eligibility checks and amount calculation.
Checks run in a fixed order and stop at the first failure so customers
always see the most relevant reason.
"""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional
from datetime import datetime, timezone
from enum import Enum


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_DELIVERY = "free_delivery"


class DiscountCode(BaseModel):
    """
    Discount code as stored in `discount_codes`

    discount_value is a percentage (10 = 10%) for percentage codes and a
    dollar amount for fixed codes; free_delivery codes ignore it.
    """
    id: str
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Optional[float] = None
    min_order_amount: Optional[float] = None
    max_uses: Optional[int] = None
    current_uses: int = 0
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DiscountCodeCreate(BaseModel):
    """Admin payload for a new code"""
    code: str = Field(..., min_length=1)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Optional[float] = Field(None, ge=0)
    min_order_amount: Optional[float] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True

    @model_validator(mode="after")
    def value_required_for_amount_types(self):
        if self.discount_type in (DiscountType.PERCENTAGE, DiscountType.FIXED) and not self.discount_value:
            raise ValueError("Discount value is required for percentage and fixed discounts")
        return self


class DiscountCodeUpdate(BaseModel):
    description: Optional[str] = None
    discount_value: Optional[float] = Field(None, ge=0)
    min_order_amount: Optional[float] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None


class DiscountValidation(BaseModel):
    """Outcome of validating a code against a subtotal"""
    valid: bool
    error: Optional[str] = None
    discount_code_id: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_amount: float = 0
    discount_value: Optional[float] = None
    free_delivery: bool = False

    @classmethod
    def failure(cls, error: str) -> "DiscountValidation":
        return cls(valid=False, error=error)


INVALID_CODE = "Invalid discount code"


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def check_eligibility(
    discount: DiscountCode,
    subtotal: float,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Return the first reason the code cannot be used, or None"""
    now = _aware(now or datetime.now(timezone.utc))

    if not discount.is_active:
        return "This discount code is no longer active"

    if discount.max_uses is not None and discount.current_uses >= discount.max_uses:
        return "This discount code has reached its usage limit"

    if discount.valid_from and now < _aware(discount.valid_from):
        return "This discount code is not yet valid"

    if discount.valid_until and now > _aware(discount.valid_until):
        return "This discount code has expired"

    if discount.min_order_amount is not None and subtotal < discount.min_order_amount:
        return f"Minimum order amount of ${discount.min_order_amount:.2f} required for this code"

    return None


def calculate_discount_amount(discount: DiscountCode, subtotal: float) -> float:
    """Discount in dollars, never more than the subtotal"""
    value = discount.discount_value or 0

    if discount.discount_type == DiscountType.PERCENTAGE:
        amount = subtotal * value / 100
    elif discount.discount_type == DiscountType.FIXED:
        amount = value
    else:
        # free_delivery: checkout zeroes the delivery fee instead
        amount = 0.0

    return min(amount, subtotal)


def validate_discount(
    discount: Optional[DiscountCode],
    subtotal: float,
    now: Optional[datetime] = None,
) -> DiscountValidation:
    """Validate a looked-up code (None when the lookup found nothing)"""
    if discount is None:
        return DiscountValidation.failure(INVALID_CODE)

    error = check_eligibility(discount, subtotal, now)
    if error:
        return DiscountValidation.failure(error)

    return DiscountValidation(
        valid=True,
        discount_code_id=discount.id,
        code=discount.code,
        description=discount.description,
        discount_type=discount.discount_type,
        discount_amount=calculate_discount_amount(discount, subtotal),
        discount_value=discount.discount_value,
        free_delivery=discount.discount_type == DiscountType.FREE_DELIVERY,
    )
