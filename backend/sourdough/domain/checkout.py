"""
Checkout Domain

Checkout request payload and server-side cart verification. The client
sends prices it displayed; they are only compared, never trusted: the
order is always built from catalog prices.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime

from sourdough.domain.order import DeliveryAddress, FulfillmentType

PRICE_TOLERANCE = 0.01


class CartItem(BaseModel):
    """One cart line as sent by the storefront"""
    product_id: str
    variant_id: str
    product_name: str
    variant_name: Optional[str] = None
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    image_url: Optional[str] = None


class CheckoutRequest(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
    subtotal: float = Field(0, description="Client-side subtotal, informational only")
    discount_code: Optional[str] = None

    email: str = Field(..., min_length=3)
    full_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)

    fulfillment_type: FulfillmentType
    delivery_address: Optional[DeliveryAddress] = None
    pickup_location_id: Optional[str] = None
    delivery_instructions: Optional[str] = None
    delivery_date: str = Field(..., description="YYYY-MM-DD")
    delivery_window: str = Field(..., description='"HH:MM - HH:MM"')

    @model_validator(mode="after")
    def address_required_for_delivery(self):
        if self.fulfillment_type == FulfillmentType.DELIVERY and self.delivery_address is None:
            raise ValueError("Delivery address is required")
        return self

    @property
    def window_start(self) -> str:
        return self.delivery_window.split(" - ")[0]


class VariantPricing(BaseModel):
    """A variant joined with the product fields checkout needs"""
    id: str
    product_id: str
    price_adjustment: float = 0
    is_available: bool = True
    inventory_count: Optional[int] = None
    track_inventory: bool = False
    base_price: float
    product_available: bool = True
    lead_time_hours: int = 0
    max_per_order: Optional[int] = None
    name: str = ""

    @property
    def unit_price(self) -> float:
        return self.base_price + self.price_adjustment


class PricedLine(BaseModel):
    item: CartItem
    unit_price: float

    @property
    def total_price(self) -> float:
        return self.unit_price * self.item.quantity


class CartValidation(BaseModel):
    """Result of verify_cart: error set, or priced lines and subtotal"""
    error: Optional[str] = None
    details: Optional[str] = None
    lines: List[PricedLine] = Field(default_factory=list)
    subtotal: float = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class CheckoutResult(BaseModel):
    session_url: Optional[str] = None
    order_id: str
    order_number: str


def hours_until(delivery_date: str, window_start: str, now: Optional[datetime] = None) -> float:
    """Hours from now until the start of the requested window (local time)"""
    target = datetime.fromisoformat(f"{delivery_date}T{window_start}:00")
    now = now or datetime.now()
    return (target - now).total_seconds() / 3600


def verify_cart(
    items: List[CartItem],
    variants: Dict[str, VariantPricing],
    hours_until_fulfillment: float,
) -> CartValidation:
    """
    Check every cart line against the catalog.

    Problems are collected per category and reported in a fixed order:
    unavailable, stock, lead time, quantity limit, price mismatch.
    """
    unavailable: List[str] = []
    insufficient_stock: List[str] = []
    lead_time: List[str] = []
    over_limit: List[str] = []
    price_mismatch: List[str] = []
    lines: List[PricedLine] = []
    subtotal = 0.0

    for item in items:
        variant = variants.get(item.variant_id)
        if variant is None or not variant.is_available or not variant.product_available:
            unavailable.append(item.product_name)
            continue

        if variant.track_inventory and variant.inventory_count is not None:
            if variant.inventory_count < item.quantity:
                insufficient_stock.append(
                    f"{item.product_name} (only {variant.inventory_count} available)"
                )

        required = variant.lead_time_hours or 0
        if hours_until_fulfillment < required:
            lead_time.append(f"{item.product_name} requires {required}h notice")

        if variant.max_per_order is not None and item.quantity > variant.max_per_order:
            over_limit.append(f"{item.product_name} (max {variant.max_per_order} per order)")

        if abs(variant.unit_price - item.unit_price) > PRICE_TOLERANCE:
            price_mismatch.append(item.product_name)

        lines.append(PricedLine(item=item, unit_price=variant.unit_price))
        subtotal += variant.unit_price * item.quantity

    if unavailable:
        return CartValidation(
            error=f"The following items are no longer available: {', '.join(unavailable)}"
        )
    if insufficient_stock:
        return CartValidation(error=f"Insufficient stock: {', '.join(insufficient_stock)}")
    if lead_time:
        return CartValidation(
            error=(
                f"Not enough preparation time: {', '.join(lead_time)}. "
                "Please select a later delivery time."
            )
        )
    if over_limit:
        return CartValidation(error=f"Quantity limit exceeded: {', '.join(over_limit)}")
    if price_mismatch:
        return CartValidation(
            error="Price verification failed. Please refresh your cart and try again.",
            details=f"Mismatched items: {', '.join(price_mismatch)}",
        )

    return CartValidation(lines=lines, subtotal=subtotal)
