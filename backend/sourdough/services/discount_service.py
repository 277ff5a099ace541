"""
Discount Service
Customer code validation and admin management of discount codes
"""
import logging
from datetime import datetime
from typing import List, Optional

from sourdough.core.errors import ConflictError, ValidationError
from sourdough.domain.discount import (
    DiscountCode,
    DiscountCodeCreate,
    DiscountCodeUpdate,
    DiscountValidation,
    INVALID_CODE,
    validate_discount,
)
from sourdough.repositories.discount_repository import DiscountRepository

logger = logging.getLogger(__name__)


class DiscountService:

    def __init__(self, repository: Optional[DiscountRepository] = None):
        self.repository = repository or DiscountRepository()

    def validate_code(
        self,
        code: str,
        subtotal: float,
        now: Optional[datetime] = None,
    ) -> DiscountValidation:
        """
        Validate a customer-entered code against the cart subtotal

        Never raises: lookup failures come back as "Invalid discount code".
        """
        if not code or not code.strip():
            return DiscountValidation.failure(INVALID_CODE)

        result = validate_discount(self.repository.find_by_code(code), subtotal, now)
        if not result.valid:
            logger.info(f"Discount code '{code}' rejected: {result.error}")
        return result

    def record_usage(self, discount_id: str) -> bool:
        return self.repository.increment_usage(discount_id)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_codes(self) -> List[DiscountCode]:
        return self.repository.list_codes()

    def create_code(self, data: DiscountCodeCreate) -> DiscountCode:
        if data.valid_from and data.valid_until and data.valid_until < data.valid_from:
            raise ValidationError("valid_until must be after valid_from")

        if self.repository.find_by_code(data.code) is not None:
            raise ConflictError("A discount code with this code already exists")

        discount = self.repository.create(data)
        logger.info(f"Discount code created: {discount.code}")
        return discount

    def update_code(self, discount_id: str, updates: DiscountCodeUpdate) -> DiscountCode:
        fields = updates.model_dump(mode="json", exclude_unset=True)
        if not fields:
            raise ValidationError("No fields to update")
        return self.repository.update(discount_id, fields)

    def delete_code(self, discount_id: str) -> None:
        self.repository.delete(discount_id)
        logger.info(f"Discount code deleted: {discount_id}")
