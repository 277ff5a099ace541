"""
Unit tests for ProductRepository, DiscountRepository, LoyaltyRepository
and SettingsRepository

Author: TM3
Date: 2025-10-17
"""
import pytest

from sourdough.core.errors import NotFoundError, RepositoryError
from sourdough.domain.discount import DiscountCodeCreate, DiscountType
from sourdough.repositories.discount_repository import DiscountRepository
from sourdough.repositories.loyalty_repository import LoyaltyRepository
from sourdough.repositories.product_repository import ProductRepository
from sourdough.repositories.settings_repository import SettingsRepository


PRODUCT_ROW = {
    "id": "prod-1",
    "name": "Country Sourdough",
    "slug": "country-sourdough",
    "category": "breads",
    "base_price": 10,
    "lead_time_hours": 24,
    "variants": [
        {"id": "var-2", "product_id": "prod-1", "name": "Large", "price_adjustment": 2.5, "sort_order": 2},
        {"id": "var-1", "product_id": "prod-1", "name": "Regular", "sort_order": 1},
    ],
}


class TestProductRepository:
    """Test ProductRepository methods"""

    def test_find_all_sorts_variants(self, fake_supabase):
        fake_supabase.respond("products", data=[PRODUCT_ROW])
        repo = ProductRepository(fake_supabase)

        products = repo.find_all()

        assert [v.name for v in products[0].variants] == ["Regular", "Large"]
        assert products[0].price_for(products[0].variants[1]) == 12.5

    def test_find_all_filters(self, fake_supabase):
        repo = ProductRepository(fake_supabase)

        repo.find_all(category="breads", search="rye", featured_only=True)

        query = fake_supabase.queries[0]
        assert ("category", "breads") in query.called("eq")
        assert ("is_featured", True) in query.called("eq")
        assert query.called("or_") == [("name.ilike.%rye%,description.ilike.%rye%",)]

    def test_category_all_is_not_a_filter(self, fake_supabase):
        repo = ProductRepository(fake_supabase)

        repo.find_all(category="all")

        assert fake_supabase.queries[0].called("eq") == [("is_available", True)]

    def test_find_all_failure_is_empty(self, fake_supabase):
        fake_supabase.respond("products", error=RuntimeError("boom"))
        repo = ProductRepository(fake_supabase)

        assert repo.find_all() == []

    def test_find_by_slug(self, fake_supabase):
        fake_supabase.respond("products", data=[PRODUCT_ROW])
        repo = ProductRepository(fake_supabase)

        product = repo.find_by_slug("country-sourdough")

        assert product.id == "prod-1"
        assert len(product.variants) == 2

    def test_get_variant_pricing(self, fake_supabase):
        # Arrange
        fake_supabase.respond("product_variants", data=[{
            "id": "var-2",
            "product_id": "prod-1",
            "price_adjustment": 2.5,
            "is_available": True,
            "inventory_count": None,
            "track_inventory": False,
            "products": {"base_price": 10, "is_available": True, "lead_time_hours": 24,
                         "max_per_order": 6, "name": "Country Sourdough"},
        }])
        repo = ProductRepository(fake_supabase)

        # Act
        pricing = repo.get_variant_pricing(["var-2"])

        # Assert
        assert pricing["var-2"].unit_price == 12.5
        assert pricing["var-2"].lead_time_hours == 24
        assert pricing["var-2"].max_per_order == 6

    def test_get_variant_pricing_raises(self, fake_supabase):
        fake_supabase.respond("product_variants", error=RuntimeError("boom"))
        repo = ProductRepository(fake_supabase)

        with pytest.raises(RuntimeError):
            repo.get_variant_pricing(["var-1"])


class TestDiscountRepository:
    """Test DiscountRepository methods"""

    def test_find_by_code_escapes_wildcards(self, fake_supabase):
        repo = DiscountRepository(fake_supabase)

        repo.find_by_code(" 50%_OFF ")

        assert fake_supabase.queries[0].called("ilike") == [("code", "50\\%\\_OFF")]

    def test_find_by_code(self, fake_supabase):
        fake_supabase.respond("discount_codes", data=[
            {"id": "d1", "code": "BREAD10", "discount_type": "percentage", "discount_value": 10}
        ])
        repo = DiscountRepository(fake_supabase)

        code = repo.find_by_code("bread10")

        assert code.discount_type == DiscountType.PERCENTAGE

    def test_create_uppercases_code(self, fake_supabase):
        fake_supabase.respond("discount_codes", data=[
            {"id": "d1", "code": "SPRING", "discount_type": "fixed", "discount_value": 5}
        ])
        repo = DiscountRepository(fake_supabase)

        repo.create(DiscountCodeCreate(code=" spring ", discount_type="fixed", discount_value=5))

        payload = fake_supabase.queries[0].called("insert")[0][0]
        assert payload["code"] == "SPRING"
        assert payload["current_uses"] == 0
        assert payload["discount_type"] == "fixed"

    def test_list_codes_raises(self, fake_supabase):
        fake_supabase.respond("discount_codes", error=RuntimeError("boom"))
        repo = DiscountRepository(fake_supabase)

        with pytest.raises(RepositoryError):
            repo.list_codes()

    def test_update_missing_code_is_not_found(self, fake_supabase):
        fake_supabase.respond("discount_codes", data=[])
        repo = DiscountRepository(fake_supabase)

        with pytest.raises(NotFoundError, match="Discount code not found"):
            repo.update("missing", {"is_active": False})

    def test_increment_usage(self, fake_supabase):
        repo = DiscountRepository(fake_supabase)

        assert repo.increment_usage("d1") is True
        assert fake_supabase.queries[0].params == {"discount_code_id": "d1"}


class TestLoyaltyRepository:
    def test_get_points_row(self, fake_supabase):
        fake_supabase.respond("loyalty_points", data=[{"points": 120, "lifetime_points": 400, "tier": "silver"}])
        repo = LoyaltyRepository(fake_supabase)

        assert repo.get_points_row("user-1")["points"] == 120

    def test_redeem_returns_procedure_result(self, fake_supabase):
        fake_supabase.respond("rpc:redeem_loyalty_points", data={"success": True, "code": "LOYAL-AB12"})
        repo = LoyaltyRepository(fake_supabase)

        result = repo.redeem("user-1", 100)

        assert result == {"success": True, "code": "LOYAL-AB12"}
        assert fake_supabase.queries[0].params == {"user_id_param": "user-1", "points_to_redeem": 100}


class TestSettingsRepository:
    def test_get_value(self, fake_supabase):
        fake_supabase.respond("business_settings", data=[{"value": {"rate": 0.0875}}])
        repo = SettingsRepository(fake_supabase)

        assert repo.get_value("tax_settings") == {"rate": 0.0875}

    def test_get_values(self, fake_supabase):
        fake_supabase.respond("business_settings", data=[
            {"key": "business_name", "value": "Happy Sourdough"},
        ])
        repo = SettingsRepository(fake_supabase)

        assert repo.get_values(["business_name", "business_phone"]) == {"business_name": "Happy Sourdough"}

    def test_set_value_upserts(self, fake_supabase):
        repo = SettingsRepository(fake_supabase)

        repo.set_value("business_phone", "555")

        query = fake_supabase.queries[0]
        assert query.called("upsert") == [({"key": "business_phone", "value": "555"},)]
        assert query.kwargs_of("upsert") == [{"on_conflict": "key"}]

    def test_set_value_raises(self, fake_supabase):
        fake_supabase.respond("business_settings", error=RuntimeError("boom"))
        repo = SettingsRepository(fake_supabase)

        with pytest.raises(RepositoryError, match="Failed to save setting business_phone"):
            repo.set_value("business_phone", "555")
