"""
Products API Endpoints
Storefront catalog: listing, search and product detail

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from sourdough.api.deps import get_product_repository
from sourdough.repositories.product_repository import ProductRepository

router = APIRouter()


@router.get("/")
async def list_products(
    category: Optional[str] = Query(None, description="Filter by category ('all' for every category)"),
    search: Optional[str] = Query(None, description="Search in name and description"),
    featured: bool = Query(False, description="Only featured products"),
    repo: ProductRepository = Depends(get_product_repository),
):
    """
    Get available products with their variants

    Products are sorted by name; variants by sort_order.
    """
    products = repo.find_all(category=category, search=search, featured_only=featured)

    return {
        "status": "success",
        "count": len(products),
        "data": [product.model_dump(mode="json") for product in products],
    }


@router.get("/{slug}")
async def get_product(
    slug: str,
    repo: ProductRepository = Depends(get_product_repository),
):
    """Get one product by slug plus up to three related products from its category"""
    product = repo.find_by_slug(slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    related = [p for p in repo.find_by_category(product.category) if p.id != product.id][:3]

    return {
        "status": "success",
        "data": product.model_dump(mode="json"),
        "related": [p.model_dump(mode="json") for p in related],
    }
