"""
Unit tests for DiscountService and LoyaltyService
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from sourdough.core.errors import ConflictError, ValidationError
from sourdough.domain.discount import DiscountCode, DiscountCodeCreate, DiscountCodeUpdate, DiscountType
from sourdough.domain.loyalty import LoyaltyTier
from sourdough.services.discount_service import DiscountService
from sourdough.services.loyalty_service import LoyaltyService

BREAD10 = DiscountCode(id="disc-1", code="BREAD10", discount_type=DiscountType.PERCENTAGE, discount_value=10)


class TestDiscountService:
    """Test DiscountService methods"""

    def test_validate_code(self):
        repo = MagicMock()
        repo.find_by_code.return_value = BREAD10

        result = DiscountService(repo).validate_code("bread10", 40)

        assert result.valid
        assert result.discount_amount == 4
        repo.find_by_code.assert_called_once_with("bread10")

    @pytest.mark.parametrize("code", ["", "   "])
    def test_blank_code_skips_lookup(self, code):
        repo = MagicMock()

        result = DiscountService(repo).validate_code(code, 40)

        assert result.error == "Invalid discount code"
        repo.find_by_code.assert_not_called()

    def test_unknown_code(self):
        repo = MagicMock()
        repo.find_by_code.return_value = None

        result = DiscountService(repo).validate_code("NOPE", 40)

        assert not result.valid
        assert result.error == "Invalid discount code"

    def test_create_code(self):
        repo = MagicMock()
        repo.find_by_code.return_value = None
        repo.create.return_value = BREAD10
        data = DiscountCodeCreate(code="BREAD10", discount_type="percentage", discount_value=10)

        assert DiscountService(repo).create_code(data) == BREAD10
        repo.create.assert_called_once_with(data)

    def test_create_duplicate_code(self):
        repo = MagicMock()
        repo.find_by_code.return_value = BREAD10
        data = DiscountCodeCreate(code="bread10", discount_type="percentage", discount_value=10)

        with pytest.raises(ConflictError, match="already exists"):
            DiscountService(repo).create_code(data)

        repo.create.assert_not_called()

    def test_create_with_inverted_dates(self):
        data = DiscountCodeCreate(
            code="SPRING",
            discount_type="fixed",
            discount_value=5,
            valid_from=datetime(2025, 4, 1, tzinfo=timezone.utc),
            valid_until=datetime(2025, 3, 1, tzinfo=timezone.utc),
        )

        with pytest.raises(ValidationError):
            DiscountService(MagicMock()).create_code(data)

    def test_update_sends_only_set_fields(self):
        repo = MagicMock()

        DiscountService(repo).update_code("disc-1", DiscountCodeUpdate(is_active=False))

        repo.update.assert_called_once_with("disc-1", {"is_active": False})

    def test_empty_update(self):
        with pytest.raises(ValidationError, match="No fields to update"):
            DiscountService(MagicMock()).update_code("disc-1", DiscountCodeUpdate())

    def test_record_usage(self):
        repo = MagicMock()
        repo.increment_usage.return_value = True

        assert DiscountService(repo).record_usage("disc-1") is True


class TestLoyaltyService:
    """Test LoyaltyService methods"""

    def test_status(self):
        repo = MagicMock()
        repo.get_points_row.return_value = {"points": 120, "lifetime_points": 480, "tier": "silver"}

        status = LoyaltyService(repo).get_loyalty_status("user-1")

        assert status.points_balance == 120
        assert status.lifetime_points == 480
        assert status.tier == LoyaltyTier.SILVER

    def test_status_defaults_tier(self):
        repo = MagicMock()
        repo.get_points_row.return_value = {"points": 10, "lifetime_points": 10, "tier": None}

        assert LoyaltyService(repo).get_loyalty_status("user-1").tier == LoyaltyTier.BRONZE

    def test_no_row(self):
        repo = MagicMock()
        repo.get_points_row.return_value = None

        assert LoyaltyService(repo).get_loyalty_status("user-1") is None

    def test_redeem_requires_user(self):
        result = LoyaltyService(MagicMock()).redeem_points(None, 100)

        assert result.success is False
        assert result.error == "Not authenticated"

    def test_redeem_success(self):
        repo = MagicMock()
        repo.redeem.return_value = {"success": True, "code": "LOYAL-AB12"}

        result = LoyaltyService(repo).redeem_points("user-1", 100)

        assert result.success is True
        assert result.code == "LOYAL-AB12"

    def test_redeem_rejected_by_procedure(self):
        repo = MagicMock()
        repo.redeem.return_value = {"success": False, "error": "Insufficient points"}

        result = LoyaltyService(repo).redeem_points("user-1", 1000)

        assert result.success is False
        assert result.error == "Insufficient points"

    def test_redeem_without_error_message(self):
        repo = MagicMock()
        repo.redeem.return_value = {}

        assert LoyaltyService(repo).redeem_points("user-1", 100).error == "Redemption failed"

    def test_redeem_exception(self):
        repo = MagicMock()
        repo.redeem.side_effect = RuntimeError("function does not exist")

        result = LoyaltyService(repo).redeem_points("user-1", 100)

        assert result.success is False
        assert result.error == "function does not exist"
