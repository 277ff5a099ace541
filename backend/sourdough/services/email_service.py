"""
Email Service
Transactional order emails rendered with Jinja2 and sent through Resend

Templates live in sourdough/templates/email. Send failures are logged and
re-raised as UpstreamError; callers decide whether they are fatal.

Author: TM3
Date: 2025-12-10
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import resend
from jinja2 import Environment, PackageLoader, select_autoescape
from pydantic import BaseModel, Field

from sourdough.core.config import settings
from sourdough.core.errors import UpstreamError
from sourdough.domain.order import FulfillmentType, OrderStatus
from sourdough.services.business_settings_service import BusinessSettingsService, business_settings

logger = logging.getLogger(__name__)


# ============================================================================
# Payloads
# ============================================================================

class EmailItem(BaseModel):
    product_name: str
    variant_name: Optional[str] = None
    quantity: int
    unit_price: float = 0
    total_price: float = 0


class EmailTimeSlot(BaseModel):
    date: str
    window_start: str
    window_end: str


class OrderConfirmationData(BaseModel):
    order_number: str
    customer_name: str = "Customer"
    customer_email: str
    items: List[EmailItem] = Field(default_factory=list)
    subtotal: float = 0
    delivery_fee: float = 0
    discount_amount: float = 0
    tax: float = 0
    total: float = 0
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP
    delivery_address: Optional[str] = None
    pickup_location: Optional[str] = None
    time_slot: Optional[EmailTimeSlot] = None


class StatusUpdateData(BaseModel):
    order_number: str
    customer_name: str = "Customer"
    customer_email: str
    status: OrderStatus
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP
    estimated_time: Optional[str] = None
    pickup_location: Optional[str] = None


class OrderReadyData(BaseModel):
    order_number: str
    customer_name: str = "Customer"
    customer_email: str
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP
    items: List[EmailItem] = Field(default_factory=list)
    delivery_address: Optional[str] = None
    delivery_eta: Optional[str] = None
    pickup_location: Optional[str] = None
    time_slot: Optional[EmailTimeSlot] = None


# Customer-facing wording per status (emails only; admin labels live in order_workflow)
EMAIL_STATUS_INFO: Dict[OrderStatus, Dict[str, str]] = {
    OrderStatus.RECEIVED: {
        "title": "Order Received",
        "description": "We've received your order and it's in our queue!",
        "emoji": "\U0001F4DD",
    },
    OrderStatus.CONFIRMED: {
        "title": "Order Confirmed",
        "description": "Your payment has been confirmed and your order is being prepared.",
        "emoji": "✅",
    },
    OrderStatus.BAKING: {
        "title": "Baking in Progress",
        "description": "Our bakers are hard at work making your fresh goods!",
        "emoji": "\U0001F35E",
    },
    OrderStatus.DECORATING: {
        "title": "Decorating Your Order",
        "description": "Adding the finishing touches to make it perfect.",
        "emoji": "\U0001F3A8",
    },
    OrderStatus.QUALITY_CHECK: {
        "title": "Quality Check",
        "description": "Making sure everything meets our high standards.",
        "emoji": "✨",
    },
    OrderStatus.READY: {
        "title": "Ready for Pickup/Delivery",
        "description": "Your order is ready! Check your email for pickup/delivery details.",
        "emoji": "\U0001F389",
    },
    OrderStatus.OUT_FOR_DELIVERY: {
        "title": "Out for Delivery",
        "description": "Your order is on its way to you!",
        "emoji": "\U0001F69A",
    },
    OrderStatus.DELIVERED: {
        "title": "Delivered",
        "description": "Your order has been delivered. Enjoy!",
        "emoji": "\U0001F38A",
    },
    OrderStatus.PICKED_UP: {
        "title": "Picked Up",
        "description": "Your order has been picked up. Enjoy!",
        "emoji": "\U0001F38A",
    },
    OrderStatus.CANCELLED: {
        "title": "Order Cancelled",
        "description": "Your order has been cancelled.",
        "emoji": "❌",
    },
    OrderStatus.REFUNDED: {
        "title": "Order Refunded",
        "description": "Your order has been refunded.",
        "emoji": "\U0001F4B0",
    },
}


# ============================================================================
# Rendering
# ============================================================================

def _money(value: Any) -> str:
    return f"${float(value or 0):,.2f}"


def _long_date(value: str) -> str:
    """"2025-03-14" -> "Friday, March 14, 2025" """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    return f"{parsed:%A}, {parsed:%B} {parsed.day}, {parsed.year}"


def build_environment() -> Environment:
    env = Environment(
        loader=PackageLoader("sourdough", "templates"),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["money"] = _money
    env.filters["long_date"] = _long_date
    return env


class EmailService:
    """
    Renders and sends order emails

    The Resend API key is set per send so the key can come from settings
    loaded after import.
    """

    def __init__(
        self,
        settings_service: Optional[BusinessSettingsService] = None,
        sender: str = settings.EMAIL_FROM,
        reply_to: Optional[str] = settings.EMAIL_REPLY_TO,
    ):
        self.settings_service = settings_service or business_settings
        self.sender = sender
        self.reply_to = reply_to
        self.env = build_environment()

    def render(self, template_name: str, **context: Any) -> str:
        template = self.env.get_template(f"email/{template_name}")
        return template.render(
            business=self.settings_service.get_business_info(),
            business_hours=self.settings_service.get_operating_hours_text(),
            **context,
        )

    def _send(self, to: str, subject: str, html: str) -> Dict[str, Any]:
        if not settings.RESEND_API_KEY:
            raise UpstreamError("RESEND_API_KEY is not configured")

        params: Dict[str, Any] = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if self.reply_to:
            params["reply_to"] = self.reply_to

        resend.api_key = settings.RESEND_API_KEY
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error(f"Failed to send '{subject}' to {to}: {e}")
            raise UpstreamError(f"Email delivery failed: {e}")

        logger.info(f"Email sent: '{subject}' id={response.get('id') if isinstance(response, dict) else response}")
        return response

    def send_order_confirmation(self, data: OrderConfirmationData) -> Dict[str, Any]:
        html = self.render("order_confirmation.html", **data.model_dump(mode="json"))
        return self._send(
            data.customer_email,
            f"Order Confirmation - Order #{data.order_number}",
            html,
        )

    def send_status_update(self, data: StatusUpdateData) -> Dict[str, Any]:
        html = self.render(
            "order_status_update.html",
            status_info=EMAIL_STATUS_INFO[data.status],
            **data.model_dump(mode="json"),
        )
        return self._send(
            data.customer_email,
            f"Order Update - Order #{data.order_number}",
            html,
        )

    def send_order_ready(self, data: OrderReadyData) -> Dict[str, Any]:
        html = self.render("order_ready.html", **data.model_dump(mode="json"))
        return self._send(
            data.customer_email,
            f"Your Order is Ready! - Order #{data.order_number}",
            html,
        )
