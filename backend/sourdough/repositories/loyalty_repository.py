"""
Loyalty Repository - loyalty_points table and redemption RPC
"""
import logging
from typing import Any, Dict, Optional

from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)


class LoyaltyRepository(SupabaseRepository):

    def get_points_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Raw loyalty row (points, lifetime_points, tier) or None"""
        try:
            response = (
                self.client.table("loyalty_points")
                .select("points, lifetime_points, tier")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching loyalty status for {user_id}: {e}")
            return None

        return self._first(response)

    def redeem(self, user_id: str, points: int) -> Dict[str, Any]:
        """
        Call redeem_loyalty_points; the procedure returns JSON like
        {"success": true, "code": "LOYAL-AB12"} or {"success": false, "error": "..."}

        Raises whatever the client raises; the service shapes the error.
        """
        response = self.client.rpc(
            "redeem_loyalty_points",
            {"user_id_param": user_id, "points_to_redeem": points},
        ).execute()
        return response.data or {}
