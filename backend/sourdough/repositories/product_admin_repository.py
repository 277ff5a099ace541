"""
Product Admin Repository - back-office management of the catalog

Unlike the storefront queries in ProductRepository, these see hidden
products and variants and raise RepositoryError on failure.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sourdough.core.errors import NotFoundError, RepositoryError
from sourdough.domain.product import (
    ProductCreate,
    ProductUpdate,
    ProductVariant,
    ProductWithVariants,
    VariantCreate,
    VariantUpdate,
    generate_slug,
)
from sourdough.repositories.base import SupabaseRepository
from sourdough.repositories.product_repository import PRODUCT_WITH_VARIANTS, product_from_row

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProductAdminRepository(SupabaseRepository):

    def list_products(self) -> List[ProductWithVariants]:
        """Every product, available or not, with variants, sorted by name"""
        try:
            response = self.client.table("products").select(PRODUCT_WITH_VARIANTS).order("name").execute()
        except Exception as e:
            logger.error(f"Error fetching admin products: {e}")
            raise RepositoryError("Failed to fetch products")

        return [product_from_row(row) for row in self._rows(response)]

    def get_product(self, product_id: str) -> Optional[ProductWithVariants]:
        try:
            response = (
                self.client.table("products")
                .select(PRODUCT_WITH_VARIANTS)
                .eq("id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching product {product_id}: {e}")
            raise RepositoryError("Failed to fetch product")

        row = self._first(response)
        return product_from_row(row) if row else None

    def create_product(self, data: ProductCreate) -> ProductWithVariants:
        payload = data.model_dump()
        payload["slug"] = data.slug or generate_slug(data.name)
        try:
            response = self.client.table("products").insert(payload).execute()
        except Exception as e:
            logger.error(f"Error creating product {data.name}: {e}")
            raise RepositoryError("Failed to create product")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to create product")
        logger.info(f"Created product {row.get('id')}: {data.name}")
        return product_from_row(row)

    def update_product(self, product_id: str, updates: ProductUpdate) -> ProductWithVariants:
        payload = {**updates.model_dump(exclude_unset=True), "updated_at": _now()}
        try:
            response = self.client.table("products").update(payload).eq("id", product_id).execute()
        except Exception as e:
            logger.error(f"Error updating product {product_id}: {e}")
            raise RepositoryError("Failed to update product")

        row = self._first(response)
        if not row:
            raise NotFoundError("Product not found")
        return product_from_row(row)

    def set_available(self, product_id: str, is_available: bool) -> ProductWithVariants:
        return self.update_product(product_id, ProductUpdate(is_available=is_available))

    def set_featured(self, product_id: str, is_featured: bool) -> ProductWithVariants:
        return self.update_product(product_id, ProductUpdate(is_featured=is_featured))

    def delete_product(self, product_id: str) -> None:
        """Variants go first; order items keep their copied names and prices"""
        try:
            self.client.table("product_variants").delete().eq("product_id", product_id).execute()
            self.client.table("products").delete().eq("id", product_id).execute()
        except Exception as e:
            logger.error(f"Error deleting product {product_id}: {e}")
            raise RepositoryError("Failed to delete product")

        logger.info(f"Deleted product {product_id}")

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def create_variant(self, product_id: str, data: VariantCreate) -> ProductVariant:
        try:
            response = (
                self.client.table("product_variants")
                .insert({"product_id": product_id, **data.model_dump()})
                .execute()
            )
        except Exception as e:
            logger.error(f"Error creating variant for {product_id}: {e}")
            raise RepositoryError("Failed to create variant")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to create variant")
        return ProductVariant(**row)

    def update_variant(self, variant_id: str, updates: VariantUpdate) -> ProductVariant:
        payload = updates.model_dump(exclude_unset=True)
        try:
            response = self.client.table("product_variants").update(payload).eq("id", variant_id).execute()
        except Exception as e:
            logger.error(f"Error updating variant {variant_id}: {e}")
            raise RepositoryError("Failed to update variant")

        row = self._first(response)
        if not row:
            raise NotFoundError("Variant not found")
        return ProductVariant(**row)

    def delete_variant(self, variant_id: str) -> None:
        try:
            self.client.table("product_variants").delete().eq("id", variant_id).execute()
        except Exception as e:
            logger.error(f"Error deleting variant {variant_id}: {e}")
            raise RepositoryError("Failed to delete variant")
