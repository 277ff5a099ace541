"""
Orders API Endpoints
Customer order tracking, order history and cancellation

Author: TM3
Date: 2025-11-05
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from typing import Optional

from sourdough.api.deps import get_order_workflow_service
from sourdough.core.auth import TokenUser, get_current_user, get_current_user_optional
from sourdough.core.rate_limit import rate_limit
from sourdough.services.order_workflow_service import OrderWorkflowService

router = APIRouter()


class CancelOrderRequest(BaseModel):
    email: Optional[str] = Field(None, description="Order email, required for guest orders")
    reason: Optional[str] = Field(None, max_length=500)


@router.get("/me")
async def my_orders(
    user: TokenUser = Depends(get_current_user),
    service: OrderWorkflowService = Depends(get_order_workflow_service),
):
    """Orders of the signed-in customer, newest first"""
    orders = service.get_user_orders(user.id)
    return {
        "status": "success",
        "count": len(orders),
        "data": orders,
    }


@router.get("/track/{order_number}")
async def track_order(
    order_number: str,
    email: Optional[str] = Query(None, description="Email used at checkout (guest orders)"),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: OrderWorkflowService = Depends(get_order_workflow_service),
):
    """
    Order status, progress and time estimate for the tracking page

    Returns 404 both for unknown orders and for email/owner mismatches.
    """
    tracking = service.track_order(order_number, email=email, user=user)
    return {"status": "success", "data": tracking}


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    request: CancelOrderRequest,
    _: None = Depends(rate_limit("ORDER_CANCEL")),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: OrderWorkflowService = Depends(get_order_workflow_service),
):
    """Cancel an order that has not started production"""
    return service.cancel_order(order_id, user=user, email=request.email, reason=request.reason)
