"""
Product Repository - Data Access Layer for the catalog

Handles product and variant queries and returns Product domain models.

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, List, Optional

from sourdough.domain.checkout import VariantPricing
from sourdough.domain.product import Product, ProductVariant, ProductWithVariants
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)

PRODUCT_WITH_VARIANTS = "*, variants:product_variants(*)"
VARIANT_PRICING_SELECT = (
    "id, product_id, price_adjustment, is_available, inventory_count, track_inventory, "
    "products!inner(base_price, is_available, lead_time_hours, max_per_order, name)"
)


def product_from_row(row: Dict) -> ProductWithVariants:
    data = dict(row)
    variants = [ProductVariant(**v) for v in (data.pop("variants", None) or [])]
    variants.sort(key=lambda v: v.sort_order)
    return ProductWithVariants(**data, variants=variants)


class ProductRepository(SupabaseRepository):
    """
    Repository for Product data access

    Storefront queries only return available products.
    """

    def find_all(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        featured_only: bool = False,
    ) -> List[ProductWithVariants]:
        """
        Available products with their variants, sorted by name

        Args:
            category: Filter by category ("all" or None for every category)
            search: Match against name or description
            featured_only: Only featured products
        """
        query = (
            self.client.table("products")
            .select(PRODUCT_WITH_VARIANTS)
            .eq("is_available", True)
        )

        if category and category != "all":
            query = query.eq("category", category)

        if featured_only:
            query = query.eq("is_featured", True)

        if search:
            term = search.replace(",", " ")
            query = query.or_(f"name.ilike.%{term}%,description.ilike.%{term}%")

        try:
            response = query.order("name").execute()
        except Exception as e:
            logger.error(f"Error fetching products: {e}")
            return []

        return [product_from_row(row) for row in self._rows(response)]

    def find_by_slug(self, slug: str) -> Optional[ProductWithVariants]:
        try:
            response = (
                self.client.table("products")
                .select(PRODUCT_WITH_VARIANTS)
                .eq("slug", slug)
                .eq("is_available", True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching product {slug}: {e}")
            return None

        row = self._first(response)
        return product_from_row(row) if row else None

    def find_by_category(self, category: str, limit: int = 4) -> List[Product]:
        """Related products for a product page"""
        try:
            response = (
                self.client.table("products")
                .select("*")
                .eq("category", category)
                .eq("is_available", True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching products in {category}: {e}")
            return []

        return [Product(**row) for row in self._rows(response)]

    def get_variants(self, product_id: str) -> List[ProductVariant]:
        try:
            response = (
                self.client.table("product_variants")
                .select("*")
                .eq("product_id", product_id)
                .eq("is_available", True)
                .order("sort_order")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching variants for {product_id}: {e}")
            return []

        return [ProductVariant(**row) for row in self._rows(response)]

    def get_variant_pricing(self, variant_ids: List[str]) -> Dict[str, VariantPricing]:
        """
        Variants joined with product price, availability and limits

        Raises on failure: checkout cannot proceed without catalog prices.
        """
        response = (
            self.client.table("product_variants")
            .select(VARIANT_PRICING_SELECT)
            .in_("id", variant_ids)
            .execute()
        )

        pricing = {}
        for row in self._rows(response):
            product = row.get("products") or {}
            pricing[row["id"]] = VariantPricing(
                id=row["id"],
                product_id=row["product_id"],
                price_adjustment=row.get("price_adjustment") or 0,
                is_available=row.get("is_available", True),
                inventory_count=row.get("inventory_count"),
                track_inventory=row.get("track_inventory") or False,
                base_price=product.get("base_price") or 0,
                product_available=product.get("is_available", True),
                lead_time_hours=product.get("lead_time_hours") or 0,
                max_per_order=product.get("max_per_order"),
                name=product.get("name") or "",
            )
        return pricing
