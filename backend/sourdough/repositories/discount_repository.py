"""
Discount Repository - discount_codes table and usage counter RPC
"""
import logging
from typing import Any, Dict, List, Optional

from sourdough.core.errors import NotFoundError, RepositoryError
from sourdough.domain.discount import DiscountCode, DiscountCodeCreate
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so ilike behaves as case-insensitive equality"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DiscountRepository(SupabaseRepository):

    def find_by_code(self, code: str) -> Optional[DiscountCode]:
        """Case-insensitive lookup; None when missing or on failure"""
        try:
            response = (
                self.client.table("discount_codes")
                .select("*")
                .ilike("code", _escape_like(code.strip()))
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching discount code: {e}")
            return None

        row = self._first(response)
        return DiscountCode(**row) if row else None

    def list_codes(self) -> List[DiscountCode]:
        try:
            response = (
                self.client.table("discount_codes")
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching discount codes: {e}")
            raise RepositoryError("Failed to fetch discount codes")

        return [DiscountCode(**row) for row in self._rows(response)]

    def create(self, data: DiscountCodeCreate) -> DiscountCode:
        payload = data.model_dump(mode="json")
        payload["code"] = data.code.strip().upper()
        payload["current_uses"] = 0

        try:
            response = self.client.table("discount_codes").insert(payload).execute()
        except Exception as e:
            logger.error(f"Error creating discount code: {e}")
            raise RepositoryError("Failed to create discount code")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to create discount code")
        return DiscountCode(**row)

    def update(self, discount_id: str, updates: Dict[str, Any]) -> DiscountCode:
        try:
            response = self.client.table("discount_codes").update(updates).eq("id", discount_id).execute()
        except Exception as e:
            logger.error(f"Error updating discount code {discount_id}: {e}")
            raise RepositoryError("Failed to update discount code")

        row = self._first(response)
        if not row:
            raise NotFoundError("Discount code not found")
        return DiscountCode(**row)

    def delete(self, discount_id: str) -> None:
        try:
            self.client.table("discount_codes").delete().eq("id", discount_id).execute()
        except Exception as e:
            logger.error(f"Error deleting discount code {discount_id}: {e}")
            raise RepositoryError("Failed to delete discount code")

    def increment_usage(self, discount_id: str) -> bool:
        """Bump current_uses atomically in the database"""
        try:
            self.client.rpc("increment_discount_usage", {"discount_code_id": discount_id}).execute()
        except Exception as e:
            logger.warning(f"Error incrementing usage for discount {discount_id}: {e}")
            return False

        return True
