"""
Admin Products API - catalog management
Products, their variants, and the availability/featured switches

Admin role required for every endpoint.

Author: TM3
Date: 2025-12-09
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from sourdough.api.deps import get_product_admin_repository
from sourdough.core.auth import TokenUser, require_admin
from sourdough.domain.product import ProductCreate, ProductUpdate, VariantCreate, VariantUpdate
from sourdough.repositories.product_admin_repository import ProductAdminRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class AvailabilityRequest(BaseModel):
    is_available: bool


class FeaturedRequest(BaseModel):
    is_featured: bool


@router.get("")
async def list_products(
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    """Every product including hidden ones"""
    products = repo.list_products()
    return {
        "status": "success",
        "count": len(products),
        "data": [p.model_dump(mode="json") for p in products],
    }


@router.post("", status_code=201)
async def create_product(
    request: ProductCreate,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    product = repo.create_product(request)
    logger.info(f"Product {product.slug} created by {user.email}")
    return {"status": "success", "data": product.model_dump(mode="json")}


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    product = repo.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"status": "success", "data": product.model_dump(mode="json")}


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    request: ProductUpdate,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    if not request.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    product = repo.update_product(product_id, request)
    return {"status": "success", "data": product.model_dump(mode="json")}


@router.post("/{product_id}/availability")
async def set_availability(
    product_id: str,
    request: AvailabilityRequest,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    product = repo.set_available(product_id, request.is_available)
    return {"status": "success", "data": product.model_dump(mode="json")}


@router.post("/{product_id}/featured")
async def set_featured(
    product_id: str,
    request: FeaturedRequest,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    product = repo.set_featured(product_id, request.is_featured)
    return {"status": "success", "data": product.model_dump(mode="json")}


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    repo.delete_product(product_id)
    logger.info(f"Product {product_id} deleted by {user.email}")
    return {"status": "success", "message": "Product deleted"}


# ============================================================================
# Variants
# ============================================================================

@router.post("/{product_id}/variants", status_code=201)
async def create_variant(
    product_id: str,
    request: VariantCreate,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    variant = repo.create_variant(product_id, request)
    return {"status": "success", "data": variant.model_dump(mode="json")}


@router.patch("/variants/{variant_id}")
async def update_variant(
    variant_id: str,
    request: VariantUpdate,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    if not request.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    variant = repo.update_variant(variant_id, request)
    return {"status": "success", "data": variant.model_dump(mode="json")}


@router.delete("/variants/{variant_id}")
async def delete_variant(
    variant_id: str,
    user: TokenUser = Depends(require_admin),
    repo: ProductAdminRepository = Depends(get_product_admin_repository),
):
    repo.delete_variant(variant_id)
    return {"status": "success", "message": "Variant deleted"}
