"""
Checkout Service
Turns a verified cart into a pending order and a Stripe Checkout Session

Flow:
1. Verify cart lines against catalog prices, stock, lead time and limits
2. Resolve delivery zone, delivery fee, discount and tax server-side
3. Check the requested time slot
4. Insert order + items, reserve the slot
5. Create the Stripe session (rolled back on any failure)

Author: TM3
Date: 2025-12-02
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sourdough.core.auth import TokenUser
from sourdough.core.errors import (
    ConflictError,
    RepositoryError,
    SourdoughError,
    UpstreamError,
    ValidationError,
)
from sourdough.domain.checkout import CheckoutRequest, CheckoutResult, hours_until, verify_cart
from sourdough.domain.delivery import DeliveryZone
from sourdough.domain.delivery_zones import get_delivery_summary
from sourdough.domain.discount import DiscountValidation
from sourdough.domain.order import FulfillmentType, Order, PaymentStatus
from sourdough.domain.order_workflow import INITIAL_STATUS
from sourdough.repositories.delivery_repository import DeliveryRepository
from sourdough.repositories.order_repository import OrderRepository
from sourdough.repositories.pickup_repository import PickupLocationRepository
from sourdough.repositories.product_repository import ProductRepository
from sourdough.services.discount_service import DiscountService
from sourdough.services.stripe_service import StripeService, build_line_items
from sourdough.services.tax_service import TaxService

logger = logging.getLogger(__name__)

# Used when no pickup location is configured
DEFAULT_PICKUP_LOCATION = "Main Bakery"


class CheckoutService:

    def __init__(
        self,
        products: Optional[ProductRepository] = None,
        orders: Optional[OrderRepository] = None,
        delivery: Optional[DeliveryRepository] = None,
        discounts: Optional[DiscountService] = None,
        tax: Optional[TaxService] = None,
        stripe_service: Optional[StripeService] = None,
        pickup_locations: Optional[PickupLocationRepository] = None,
    ):
        self.products = products or ProductRepository()
        self.orders = orders or OrderRepository()
        self.delivery = delivery or DeliveryRepository()
        self.discounts = discounts or DiscountService()
        self.tax = tax or TaxService()
        self.stripe = stripe_service or StripeService()
        self.pickup_locations = pickup_locations or PickupLocationRepository()

    def create_checkout(
        self,
        request: CheckoutRequest,
        user: Optional[TokenUser] = None,
        now: Optional[datetime] = None,
    ) -> CheckoutResult:
        """
        Create a pending order and its payment session

        Raises:
            ValidationError: cart, zone, discount, slot or pickup location rejected
            ConflictError: the slot filled up while reserving
            UpstreamError: Supabase or Stripe failed
        """
        if not request.items:
            raise ValidationError("Cart is empty")

        # 1. Cart verification
        variant_ids = list({item.variant_id for item in request.items})
        try:
            pricing = self.products.get_variant_pricing(variant_ids)
        except Exception as e:
            logger.error(f"Error loading variant pricing: {e}")
            raise UpstreamError("Failed to verify cart")

        try:
            lead_hours = hours_until(request.delivery_date, request.window_start, now)
        except ValueError:
            raise ValidationError("Invalid delivery date or window")

        cart = verify_cart(request.items, pricing, lead_hours)
        if not cart.ok:
            logger.info(f"Cart rejected: {cart.error} {cart.details or ''}")
            raise ValidationError(cart.error, details=cart.details)

        subtotal = round(cart.subtotal, 2)

        # 2. Zone, fee, discount, tax
        zone = self._resolve_zone(request, subtotal)
        delivery_fee = get_delivery_summary(zone, subtotal).fee if zone else 0.0

        discount = self._resolve_discount(request.discount_code, subtotal)
        discount_amount = discount.discount_amount if discount else 0.0
        if discount and discount.free_delivery:
            delivery_fee = 0.0

        tax_amount = self.tax.calculate_tax(subtotal, zone.id if zone else None)
        total = round(subtotal + delivery_fee + tax_amount - discount_amount, 2)

        # 3. Time slot
        slot = self.delivery.find_slot(request.delivery_date, request.window_start)
        if slot is None:
            logger.warning(f"No time slot for {request.delivery_date} {request.window_start}")
        elif not slot.has_capacity:
            raise ValidationError("Selected time slot is full. Please choose another time.")

        # 4. Order and items
        order = self._insert_order(request, user, {
            "time_slot_id": slot.id if slot else None,
            "delivery_zone_id": zone.id if zone else None,
            "subtotal": subtotal,
            "delivery_fee": delivery_fee,
            "discount_amount": discount_amount,
            "discount_code_id": discount.discount_code_id if discount else None,
            "tax_amount": tax_amount,
            "total": total,
        })

        try:
            self.orders.create_items([
                {
                    "order_id": order.id,
                    "product_id": line.item.product_id,
                    "product_variant_id": line.item.variant_id,
                    "product_name": line.item.product_name,
                    "variant_name": line.item.variant_name,
                    "quantity": line.item.quantity,
                    "unit_price": line.unit_price,
                    "total_price": round(line.total_price, 2),
                }
                for line in cart.lines
            ])
        except RepositoryError:
            self._rollback(order)
            raise UpstreamError("Failed to create order items")

        if slot and not self.delivery.reserve_time_slot(slot.id):
            self._rollback(order)
            raise ConflictError("Failed to reserve time slot. Please try again.")

        if user and request.fulfillment_type == FulfillmentType.DELIVERY and request.delivery_address:
            self.orders.save_customer_address(user.id, request.delivery_address.model_dump())

        # 5. Payment session
        line_items = build_line_items(cart.lines, delivery_fee, tax_amount, request.delivery_address)
        try:
            session = self.stripe.create_checkout_session(
                order,
                line_items,
                request.email,
                discount_amount=discount_amount,
                discount_label=discount.code if discount else None,
            )
        except SourdoughError:
            self._rollback(order, release_slot=True)
            raise UpstreamError("Failed to create payment session. Please try again.")

        self.orders.update(order.id, {"stripe_checkout_session_id": session.id})
        logger.info(f"Checkout created for order {order.order_number} (total ${total:.2f})")

        return CheckoutResult(session_url=session.url, order_id=order.id, order_number=order.order_number)

    def _resolve_zone(self, request: CheckoutRequest, subtotal: float) -> Optional[DeliveryZone]:
        if request.fulfillment_type != FulfillmentType.DELIVERY:
            return None

        zone = self.delivery.get_zone_by_zip(request.delivery_address.zip)
        summary = get_delivery_summary(zone, subtotal)
        if not summary.can_deliver:
            raise ValidationError(summary.message)
        return zone

    def _resolve_discount(self, code: Optional[str], subtotal: float) -> Optional[DiscountValidation]:
        if not code:
            return None

        result = self.discounts.validate_code(code, subtotal)
        if not result.valid:
            raise ValidationError(result.error)
        return result

    def _resolve_pickup_location(self, location_id: Optional[str]) -> str:
        """
        Name of the chosen active location

        Without a choice the first active location is used, or
        DEFAULT_PICKUP_LOCATION when none are set up.
        """
        locations = self.pickup_locations.get_active()
        if location_id:
            for location in locations:
                if location.id == location_id:
                    return location.name
            raise ValidationError("Selected pickup location is not available")

        return locations[0].name if locations else DEFAULT_PICKUP_LOCATION

    def _insert_order(self, request: CheckoutRequest, user: Optional[TokenUser], amounts: Dict[str, Any]) -> Order:
        is_pickup = request.fulfillment_type == FulfillmentType.PICKUP
        pickup_location = self._resolve_pickup_location(request.pickup_location_id) if is_pickup else None
        payload = {
            "user_id": user.id if user else None,
            "guest_email": None if user else request.email,
            "guest_phone": None if user else request.phone,
            "status": INITIAL_STATUS.value,
            "fulfillment_type": request.fulfillment_type.value,
            "delivery_date": request.delivery_date,
            "delivery_window": request.delivery_window,
            "delivery_address": request.delivery_address.model_dump() if request.delivery_address else None,
            "pickup_location": pickup_location,
            "payment_status": PaymentStatus.PENDING.value,
            "notes": request.delivery_instructions,
            **amounts,
        }

        try:
            order = self.orders.create(payload)
        except RepositoryError:
            raise UpstreamError("Failed to create order")

        return order

    def _rollback(self, order: Order, release_slot: bool = False) -> None:
        """Undo a partially created order; failures are logged"""
        if release_slot and order.time_slot_id:
            self.delivery.release_time_slot(order.time_slot_id)

        try:
            self.orders.delete(order.id)
        except RepositoryError as e:
            logger.error(f"Rollback of order {order.order_number} failed: {e}")
