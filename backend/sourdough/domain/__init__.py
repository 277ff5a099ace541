"""
Domain models and business rules for Happy Sourdough
"""
from .order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    OrderWithDetails,
    FulfillmentType,
    PaymentStatus,
    DeliveryAddress,
)
from .product import Product, ProductVariant, ProductWithVariants
from .delivery import DeliveryZone, TimeSlot, BlackoutDate, SlotAvailability, DeliverySummary
from .discount import DiscountCode, DiscountType, DiscountValidation
from .loyalty import LoyaltyStatus, RedemptionResult
from .settings import TaxSettings, BusinessInfo, OperatingHours

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderStatusHistory",
    "OrderWithDetails",
    "FulfillmentType",
    "PaymentStatus",
    "DeliveryAddress",
    "Product",
    "ProductVariant",
    "ProductWithVariants",
    "DeliveryZone",
    "TimeSlot",
    "BlackoutDate",
    "SlotAvailability",
    "DeliverySummary",
    "DiscountCode",
    "DiscountType",
    "DiscountValidation",
    "LoyaltyStatus",
    "RedemptionResult",
    "TaxSettings",
    "BusinessInfo",
    "OperatingHours",
]
