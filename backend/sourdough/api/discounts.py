"""
Discounts API Endpoints
Customer-facing discount code validation
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from sourdough.api.deps import get_discount_service
from sourdough.core.rate_limit import rate_limit
from sourdough.services.discount_service import DiscountService

router = APIRouter()


class ValidateDiscountRequest(BaseModel):
    code: str = Field(..., max_length=64)
    subtotal: float = Field(..., ge=0)


@router.post("/validate")
async def validate_discount_code(
    request: ValidateDiscountRequest,
    _: None = Depends(rate_limit("DISCOUNT")),
    service: DiscountService = Depends(get_discount_service),
):
    """
    Validate a code against the cart subtotal

    Always 200: an unusable code comes back with valid=false and the
    reason in error.
    """
    result = service.validate_code(request.code, request.subtotal)
    return result.model_dump(mode="json")
