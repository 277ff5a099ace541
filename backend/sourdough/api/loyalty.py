"""
Loyalty API Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException

from sourdough.api.deps import get_loyalty_service
from sourdough.core.auth import TokenUser, get_current_user
from sourdough.domain.loyalty import LoyaltyStatus, RedeemRequest
from sourdough.services.loyalty_service import LoyaltyService

router = APIRouter()


@router.get("/")
async def get_loyalty_status(
    user: TokenUser = Depends(get_current_user),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    """Points balance and tier; customers without activity start at zero"""
    loyalty = service.get_loyalty_status(user.id) or LoyaltyStatus()
    return {"status": "success", "data": loyalty.model_dump(mode="json")}


@router.post("/redeem")
async def redeem_points(
    request: RedeemRequest,
    user: TokenUser = Depends(get_current_user),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    result = service.redeem_points(user.id, request.points)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    return {"status": "success", "data": result.model_dump()}
