"""
Checkout API Endpoints
Creates the pending order and returns the Stripe Checkout URL

Author: TM3
Date: 2025-12-02
"""
from typing import Optional

from fastapi import APIRouter, Depends

from sourdough.api.deps import get_checkout_service
from sourdough.core.auth import TokenUser, get_current_user_optional
from sourdough.core.rate_limit import rate_limit
from sourdough.domain.checkout import CheckoutRequest
from sourdough.services.checkout_service import CheckoutService

router = APIRouter()


@router.post("/")
async def create_checkout(
    request: CheckoutRequest,
    _: None = Depends(rate_limit("CHECKOUT")),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Verify the cart and start payment

    Guests check out anonymously; a signed-in customer's order is linked
    to their account. Prices, fees, discount and tax are all recomputed
    server-side.

    Returns:
        session_url: Stripe-hosted payment page
        order_id / order_number: the pending order
    """
    result = service.create_checkout(request, user=user)
    return result.model_dump()
