"""
Product Domain Model

Represents the bakery catalog: products and their size/flavor variants.
"""
import re

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class ProductVariant(BaseModel):
    """
    A purchasable variant of a product (size, flavor, ...)

    Price is the product base_price plus price_adjustment. Stock is only
    enforced when track_inventory is set and inventory_count is known.
    """
    id: str
    product_id: str
    name: str
    price_adjustment: float = 0
    sku: Optional[str] = None
    is_available: bool = True
    is_default: bool = False
    sort_order: int = 0
    track_inventory: bool = False
    inventory_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    """
    Product domain model - a catalog item

    Fields:
        id: Product UUID
        name / slug: Display name and URL slug
        category: Catalog category ("breads", "pastries", ...)
        base_price: Price before variant adjustment
        is_available / is_featured: Storefront visibility flags
        lead_time_hours: Minimum notice before the pickup/delivery time
        max_per_order: Quantity cap per order (None = unlimited)
    """

    id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    slug: str = Field(..., description="URL slug")
    description: Optional[str] = None
    short_description: Optional[str] = None
    category: str = Field("other", description="Product category")
    base_price: float = Field(..., ge=0)
    image_url: Optional[str] = None
    gallery_urls: List[str] = Field(default_factory=list)
    is_available: bool = True
    is_featured: bool = False
    allergens: List[str] = Field(default_factory=list)
    dietary_info: List[str] = Field(default_factory=list)
    lead_time_hours: int = Field(0, ge=0)
    max_per_order: Optional[int] = Field(None, ge=1)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def price_for(self, variant: Optional[ProductVariant] = None) -> float:
        if variant is None:
            return self.base_price
        return self.base_price + variant.price_adjustment


class ProductWithVariants(Product):
    variants: List[ProductVariant] = Field(default_factory=list)


class ProductCreate(BaseModel):
    """Admin create payload; slug is derived from the name when omitted"""
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    category: str = "other"
    base_price: float = Field(..., ge=0)
    image_url: Optional[str] = None
    gallery_urls: List[str] = Field(default_factory=list)
    is_available: bool = True
    is_featured: bool = False
    allergens: List[str] = Field(default_factory=list)
    dietary_info: List[str] = Field(default_factory=list)
    lead_time_hours: int = Field(24, ge=0)
    max_per_order: Optional[int] = Field(None, ge=1)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    category: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = None
    gallery_urls: Optional[List[str]] = None
    is_available: Optional[bool] = None
    is_featured: Optional[bool] = None
    allergens: Optional[List[str]] = None
    dietary_info: Optional[List[str]] = None
    lead_time_hours: Optional[int] = Field(None, ge=0)
    max_per_order: Optional[int] = Field(None, ge=1)


class VariantCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price_adjustment: float = 0
    sku: Optional[str] = None
    is_available: bool = True
    is_default: bool = False
    sort_order: int = 0
    track_inventory: bool = False
    inventory_count: int = Field(0, ge=0)


class VariantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    price_adjustment: Optional[float] = None
    sku: Optional[str] = None
    is_available: Optional[bool] = None
    is_default: Optional[bool] = None
    sort_order: Optional[int] = None
    track_inventory: Optional[bool] = None
    inventory_count: Optional[int] = Field(None, ge=0)


def generate_slug(name: str) -> str:
    """
    URL slug from a product name

    "Country Sourdough (Large)" -> "country-sourdough-large"
    """
    slug = re.sub(r"[^\w\s-]", "", name.lower().strip())
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")
