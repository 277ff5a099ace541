"""
Stripe Service
Checkout Session creation and webhook event handling

Amounts go to Stripe in cents. Webhook handlers are keyed by event type;
unknown types are acknowledged and ignored.

Author: TM3
Date: 2025-12-02
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import stripe

from sourdough.core.config import settings
from sourdough.core.errors import UpstreamError, ValidationError
from sourdough.domain.checkout import PricedLine
from sourdough.domain.order import DeliveryAddress, Order, OrderStatus, PaymentStatus
from sourdough.domain.order_workflow import validate_transition
from sourdough.repositories.delivery_repository import DeliveryRepository
from sourdough.repositories.discount_repository import DiscountRepository
from sourdough.repositories.order_repository import OrderRepository
from sourdough.services.email_service import (
    EmailItem,
    EmailService,
    EmailTimeSlot,
    OrderConfirmationData,
)

logger = logging.getLogger(__name__)


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def _absolute_image_url(image_url: Optional[str]) -> Optional[str]:
    if not image_url:
        return None
    if image_url.startswith(("http://", "https://")):
        return image_url
    separator = "" if image_url.startswith("/") else "/"
    return f"{settings.APP_URL}{separator}{image_url}"


def build_line_items(
    lines: List[PricedLine],
    delivery_fee: float,
    tax: float,
    delivery_address: Optional[DeliveryAddress] = None,
    currency: str = settings.STRIPE_CURRENCY,
) -> List[Dict[str, Any]]:
    """Product lines at catalog prices, then delivery fee (if any) and sales tax"""
    line_items = []
    for line in lines:
        item = line.item
        product_data: Dict[str, Any] = {
            "name": f"{item.product_name} - {item.variant_name}" if item.variant_name else item.product_name,
            "description": item.product_name,
        }
        image = _absolute_image_url(item.image_url)
        if image:
            product_data["images"] = [image]

        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": product_data,
                "unit_amount": to_cents(line.unit_price),
            },
            "quantity": item.quantity,
        })

    if delivery_fee > 0:
        where = f"{delivery_address.city}, {delivery_address.state}" if delivery_address else "your address"
        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": {"name": "Delivery Fee", "description": f"Delivery to {where}"},
                "unit_amount": to_cents(delivery_fee),
            },
            "quantity": 1,
        })

    line_items.append({
        "price_data": {
            "currency": currency,
            "product_data": {"name": "Sales Tax", "description": "Sales tax"},
            "unit_amount": to_cents(tax),
        },
        "quantity": 1,
    })
    return line_items


class StripeService:
    """Thin wrapper over the stripe SDK"""

    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET

    def create_checkout_session(
        self,
        order: Order,
        line_items: List[Dict[str, Any]],
        customer_email: str,
        discount_amount: float = 0,
        discount_label: Optional[str] = None,
    ):
        """
        Create a hosted Checkout Session for an order

        A discount becomes a single-use amount_off coupon so the Stripe
        total matches the order total.
        """
        if not self.api_key:
            raise UpstreamError("STRIPE_SECRET_KEY is not configured")

        stripe.api_key = self.api_key
        params: Dict[str, Any] = {
            "mode": "payment",
            "line_items": line_items,
            "customer_email": customer_email,
            "success_url": (
                f"{settings.APP_URL}/checkout/success"
                f"?session_id={{CHECKOUT_SESSION_ID}}&order_id={order.id}"
            ),
            "cancel_url": f"{settings.APP_URL}/checkout?cancelled=true",
            "metadata": {"order_id": order.id, "order_number": order.order_number},
        }

        try:
            if discount_amount > 0:
                coupon = stripe.Coupon.create(
                    amount_off=to_cents(discount_amount),
                    currency=settings.STRIPE_CURRENCY,
                    duration="once",
                    name=discount_label or "Discount",
                )
                params["discounts"] = [{"coupon": coupon.id}]

            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed for order {order.order_number}: {e}")
            raise UpstreamError("Failed to create payment session. Please try again.")

        logger.info(f"Stripe session {session.id} created for order {order.order_number}")
        return session

    def construct_event(self, payload: bytes, signature: Optional[str]):
        """Verify the stripe-signature header and parse the event"""
        if not signature:
            raise ValidationError("Missing stripe-signature header")

        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Stripe webhook signature failure: {e}")
            raise ValidationError("Invalid signature")


class StripeWebhookService:
    """
    Applies Stripe events to orders

    Handled events:
    - checkout.session.completed: paid + confirmed, discount usage, confirmation email
    - checkout.session.expired: cancelled + expired, slot released (pending orders only)
    - payment_intent.payment_failed: cancelled + failed, slot released
    - charge.refunded: refunded

    Status changes follow the order workflow; an event that would break it
    only records the payment fields.
    """

    def __init__(
        self,
        orders: Optional[OrderRepository] = None,
        delivery: Optional[DeliveryRepository] = None,
        discounts: Optional[DiscountRepository] = None,
        email: Optional[EmailService] = None,
    ):
        self.orders = orders or OrderRepository()
        self.delivery = delivery or DeliveryRepository()
        self.discounts = discounts or DiscountRepository()
        self.email = email or EmailService()

        self._handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            "checkout.session.completed": self.on_checkout_completed,
            "checkout.session.expired": self.on_checkout_expired,
            "payment_intent.payment_failed": self.on_payment_failed,
            "charge.refunded": self.on_charge_refunded,
        }

    def handle_event(self, event: Dict[str, Any]) -> bool:
        """Dispatch an event; returns False when the type is not handled"""
        handler = self._handlers.get(event["type"])
        if handler is None:
            logger.info(f"Unhandled Stripe event type: {event['type']}")
            return False

        handler(event["data"]["object"])
        return True

    def _order_from_metadata(self, obj: Dict[str, Any]) -> Optional[Order]:
        order_id = (obj.get("metadata") or {}).get("order_id")
        if not order_id:
            logger.warning(f"Stripe object {obj.get('id')} has no order_id metadata")
            return None

        order = self.orders.find_by_id(order_id)
        if order is None:
            logger.warning(f"Order {order_id} from Stripe metadata not found")
        return order

    def _apply_status(self, order: Order, new_status: OrderStatus, note: str, **fields: Any) -> bool:
        """
        Move an order to new_status when the workflow allows it.

        Payment fields are always recorded. When the edge is not allowed the
        status is left alone and the event is noted in the history for staff.
        Returns True when the status changed.
        """
        check = validate_transition(order.status, new_status)
        if not check.valid:
            logger.warning(
                f"Stripe event for order {order.order_number} would move "
                f"{order.status.value} -> {new_status.value}: {check.error}; needs staff review"
            )
            self.orders.update(order.id, fields)
            self.orders.add_status_history(order.id, order.status, f"{note} (status unchanged: {check.error})")
            return False

        self.orders.update_status(order.id, new_status, **fields)
        self.orders.add_status_history(order.id, new_status, note)
        return True

    def on_checkout_completed(self, session: Dict[str, Any]) -> None:
        order = self._order_from_metadata(session)
        if order is None:
            return

        if order.is_paid:
            logger.info(f"Order {order.order_number} already paid, ignoring duplicate event")
            return

        confirmed = self._apply_status(
            order,
            OrderStatus.CONFIRMED,
            "Payment confirmed via Stripe",
            payment_status=PaymentStatus.PAID.value,
            stripe_payment_intent_id=session.get("payment_intent"),
            confirmed_at=datetime.now(timezone.utc).isoformat(),
        )
        if not confirmed:
            return

        if order.discount_code_id:
            self.discounts.increment_usage(order.discount_code_id)

        logger.info(f"Order {order.order_number} paid")
        self._send_confirmation(order)

    def _send_confirmation(self, order: Order) -> None:
        details = self.orders.with_details(order)
        if not details.customer_email:
            logger.warning(f"No email for order {order.order_number}, confirmation not sent")
            return

        time_slot = None
        if details.slot_date and details.slot_window:
            start, _, end = details.slot_window.partition(" - ")
            time_slot = EmailTimeSlot(date=details.slot_date, window_start=start, window_end=end)

        try:
            self.email.send_order_confirmation(OrderConfirmationData(
                order_number=order.order_number,
                customer_name=details.customer_name or "Customer",
                customer_email=details.customer_email,
                items=[
                    EmailItem(
                        product_name=item.product_name,
                        variant_name=item.variant_name,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        total_price=item.total_price,
                    )
                    for item in details.items
                ],
                subtotal=order.subtotal,
                delivery_fee=order.delivery_fee,
                discount_amount=order.discount_amount,
                tax=order.tax_amount,
                total=order.total,
                fulfillment_type=order.fulfillment_type,
                delivery_address=order.address_line(),
                pickup_location=order.pickup_location,
                time_slot=time_slot,
            ))
        except Exception as e:
            logger.error(f"Confirmation email failed for order {order.order_number}: {e}")

    def on_checkout_expired(self, session: Dict[str, Any]) -> None:
        order = self._order_from_metadata(session)
        if order is None:
            return

        if order.payment_status != PaymentStatus.PENDING:
            logger.info(f"Order {order.order_number} not pending, ignoring expired session")
            return

        cancelled = self._apply_status(
            order,
            OrderStatus.CANCELLED,
            "Checkout session expired - time slot released",
            payment_status=PaymentStatus.EXPIRED.value,
        )
        # A cancelled order already gave its slot back
        if cancelled and order.time_slot_id:
            self.delivery.release_time_slot(order.time_slot_id)
        logger.info(f"Order {order.order_number} expired")

    def on_payment_failed(self, intent: Dict[str, Any]) -> None:
        order = self._order_from_metadata(intent) or self.orders.find_by_payment_intent(intent.get("id", ""))
        if order is None:
            return

        cancelled = self._apply_status(
            order,
            OrderStatus.CANCELLED,
            "Payment failed - time slot released",
            payment_status=PaymentStatus.FAILED.value,
        )
        if cancelled and order.time_slot_id:
            self.delivery.release_time_slot(order.time_slot_id)
        logger.info(f"Order {order.order_number} payment failed")

    def on_charge_refunded(self, charge: Dict[str, Any]) -> None:
        intent_id = charge.get("payment_intent")
        order = self.orders.find_by_payment_intent(intent_id) if intent_id else None
        if order is None:
            logger.warning(f"No order for refunded charge {charge.get('id')}")
            return

        amount = (charge.get("amount_refunded") or 0) / 100
        currency = (charge.get("currency") or settings.STRIPE_CURRENCY).upper()
        self._apply_status(
            order,
            OrderStatus.REFUNDED,
            f"Refund processed: {amount:.2f} {currency}",
            payment_status=PaymentStatus.REFUNDED.value,
        )
        logger.info(f"Order {order.order_number} refunded")
