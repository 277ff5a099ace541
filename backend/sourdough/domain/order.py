"""
Order Domain Models

Represents order-related entities in the Happy Sourdough system.
Field names match the Supabase `orders`, `order_items` and
`order_status_history` tables.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any, Union
from datetime import datetime
from enum import Enum


class OrderStatus(str, Enum):
    """Order lifecycle states (see order_workflow for allowed transitions)"""
    RECEIVED = "received"
    CONFIRMED = "confirmed"
    BAKING = "baking"
    DECORATING = "decorating"
    QUALITY_CHECK = "quality_check"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    PICKED_UP = "picked_up"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class FulfillmentType(str, Enum):
    """Whether an order is delivered or picked up"""
    PICKUP = "pickup"
    DELIVERY = "delivery"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"
    REFUNDED = "refunded"


class DeliveryAddress(BaseModel):
    """Street address stored as JSON on the order"""
    street: str = Field(..., min_length=1)
    apt: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip: str = Field(..., min_length=3, description="ZIP code used for zone lookup")

    def one_line(self) -> str:
        street = f"{self.street} {self.apt}" if self.apt else self.street
        return f"{street}, {self.city}, {self.state} {self.zip}"


class OrderItem(BaseModel):
    """
    Order Item domain model - a line item in an order

    Prices are captured at checkout time (server-verified).
    """
    id: Optional[str] = Field(None, description="Order item ID")
    order_id: str = Field(..., description="Parent order ID")
    product_id: str = Field(..., description="Product ID")
    product_variant_id: Optional[str] = Field(None, description="Variant ID")
    product_name: str = Field("Unknown Product", description="Product name at order time")
    variant_name: Optional[str] = Field(None, description="Variant name at order time")
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    total_price: float = Field(..., ge=0)
    special_instructions: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderStatusHistory(BaseModel):
    """One row of an order's status log"""
    id: Optional[str] = None
    order_id: str
    status: OrderStatus
    changed_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class Order(BaseModel):
    """
    Order domain model - represents a customer order

    Fields:
        id: Order UUID
        order_number: Human-readable number (e.g. "HS-2024-001")
        user_id: Owning customer (None for guest orders)
        guest_email / guest_phone: Contact for guest orders
        status: Workflow status
        fulfillment_type: pickup or delivery

        # Scheduling
        delivery_date / delivery_window: Requested date and "HH:MM - HH:MM"
        time_slot_id: Reserved time slot
        delivery_zone_id: Zone resolved from the delivery ZIP
        delivery_address: Address JSON for deliveries
        pickup_location: Location name for pickups

        # Financial information
        subtotal, delivery_fee, discount_amount, tax_amount, tip_amount, total

        # Payment
        payment_status, stripe_checkout_session_id, stripe_payment_intent_id
    """

    id: str = Field(..., description="Order ID")
    order_number: str = Field(..., description="Order number")
    user_id: Optional[str] = Field(None, description="Customer user ID")
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None

    status: OrderStatus = Field(OrderStatus.RECEIVED, description="Order status")
    fulfillment_type: FulfillmentType = Field(FulfillmentType.PICKUP)

    delivery_date: Optional[str] = None
    delivery_window: Optional[str] = None
    time_slot_id: Optional[str] = None
    delivery_zone_id: Optional[Union[int, str]] = None
    delivery_address: Optional[Union[Dict[str, Any], str]] = None
    pickup_location: Optional[str] = None

    subtotal: float = Field(0, ge=0)
    delivery_fee: float = Field(0, ge=0)
    discount_amount: float = Field(0, ge=0)
    discount_code_id: Optional[str] = None
    tax_amount: float = Field(0, ge=0)
    tip_amount: float = Field(0, ge=0)
    total: float = Field(0, ge=0)

    payment_status: Optional[PaymentStatus] = PaymentStatus.PENDING
    stripe_checkout_session_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None

    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def address_line(self) -> Optional[str]:
        """Delivery address as a single display line"""
        if not self.delivery_address:
            return None
        if isinstance(self.delivery_address, str):
            return self.delivery_address
        try:
            return DeliveryAddress(**self.delivery_address).one_line()
        except ValueError:
            return None


class OrderWithDetails(Order):
    """Order plus items, status log and resolved time slot window"""
    items: List[OrderItem] = Field(default_factory=list)
    status_history: List[OrderStatusHistory] = Field(default_factory=list)
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    slot_date: Optional[str] = None
    slot_window: Optional[str] = None

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dict with computed fields"""
        data = self.model_dump(mode="json")
        data["item_count"] = self.item_count
        data["total_quantity"] = self.total_quantity
        return data


class OrderFilters(BaseModel):
    """Admin order list filters"""
    status: Optional[OrderStatus] = None
    fulfillment_type: Optional[FulfillmentType] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    search: Optional[str] = None


class ProductionItem(BaseModel):
    """Aggregated quantity of one product/variant to bake on a date"""
    product_id: str
    product_name: str
    product_variant_id: Optional[str] = None
    variant_name: Optional[str] = None
    category: str = "Other"
    quantity: int = 0
    orders_count: int = 0


class CategoryCount(BaseModel):
    category: str
    count: int


class ProductionList(BaseModel):
    """Production list for one date"""
    date: str
    items: List[ProductionItem] = Field(default_factory=list)
    total_items: int = 0
    total_orders: int = 0
    by_category: List[CategoryCount] = Field(default_factory=list)


def build_production_list(date: str, rows: List[Dict[str, Any]], total_orders: int) -> ProductionList:
    """
    Assemble a production list from per product/variant rows.

    Category totals are sorted by quantity, largest first.
    """
    items = [ProductionItem(**row) for row in rows]

    by_category: Dict[str, int] = {}
    for item in items:
        by_category[item.category] = by_category.get(item.category, 0) + item.quantity

    return ProductionList(
        date=date,
        items=items,
        total_items=sum(item.quantity for item in items),
        total_orders=total_orders,
        by_category=[
            CategoryCount(category=category, count=count)
            for category, count in sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)
        ],
    )
