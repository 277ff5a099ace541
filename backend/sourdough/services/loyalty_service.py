"""
Loyalty Service
Points balance lookup and redemption through the redeem_loyalty_points procedure
"""
import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from sourdough.domain.loyalty import LoyaltyStatus, LoyaltyTier, RedemptionResult
from sourdough.repositories.loyalty_repository import LoyaltyRepository

logger = logging.getLogger(__name__)


class LoyaltyService:

    def __init__(self, repository: Optional[LoyaltyRepository] = None):
        self.repository = repository or LoyaltyRepository()

    def get_loyalty_status(self, user_id: str) -> Optional[LoyaltyStatus]:
        """Current balance and tier; None when the customer has no row yet"""
        row = self.repository.get_points_row(user_id)
        if not row:
            return None

        try:
            return LoyaltyStatus(
                points_balance=row.get("points") or 0,
                lifetime_points=row.get("lifetime_points") or 0,
                tier=row.get("tier") or LoyaltyTier.BRONZE,
            )
        except PydanticValidationError as e:
            logger.error(f"Invalid loyalty row for {user_id}: {e}")
            return None

    def redeem_points(self, user_id: Optional[str], points: int) -> RedemptionResult:
        """
        Exchange points for a discount code

        Balance and conversion rules live in the database procedure; this
        only shapes its answer.
        """
        if not user_id:
            return RedemptionResult(success=False, error="Not authenticated")

        try:
            result = self.repository.redeem(user_id, points)
        except Exception as e:
            logger.error(f"Error redeeming {points} points for {user_id}: {e}")
            return RedemptionResult(success=False, error=str(e))

        if not result.get("success"):
            return RedemptionResult(success=False, error=result.get("error") or "Redemption failed")

        logger.info(f"User {user_id} redeemed {points} points")
        return RedemptionResult(success=True, code=result.get("code"))
