"""
Loyalty program models
"""
from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class LoyaltyTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


class LoyaltyStatus(BaseModel):
    points_balance: int = 0
    lifetime_points: int = 0
    tier: LoyaltyTier = LoyaltyTier.BRONZE


class RedeemRequest(BaseModel):
    points: int = Field(..., gt=0)


class RedemptionResult(BaseModel):
    """Redemption outcome; code is the generated discount code on success"""
    success: bool
    code: Optional[str] = None
    error: Optional[str] = None
