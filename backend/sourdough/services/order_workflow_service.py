"""
Order Workflow Service
Executes status changes, customer cancellations and order tracking

Handles:
- Admin status updates validated against the transition table
- Customer notification emails (never fail the update)
- Customer cancellation with slot release and inventory restore
- Order tracking by order number

Author: TM3
Date: 2025-11-05
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sourdough.core.auth import TokenUser
from sourdough.core.errors import NotFoundError, UnauthorizedError, ValidationError
from sourdough.domain.order import FulfillmentType, OrderStatus, OrderWithDetails
from sourdough.domain.order_workflow import (
    get_estimated_time_remaining,
    get_order_progress,
    get_status_info,
    validate_transition,
)
from sourdough.repositories.delivery_repository import DeliveryRepository
from sourdough.repositories.order_repository import OrderRepository
from sourdough.services.email_service import (
    EmailItem,
    EmailService,
    EmailTimeSlot,
    OrderReadyData,
    StatusUpdateData,
)

logger = logging.getLogger(__name__)

# Statuses a customer may still cancel from (staff can cancel later via update_order_status)
CUSTOMER_CANCELLABLE = (OrderStatus.RECEIVED, OrderStatus.CONFIRMED)

CANCEL_BLOCKED_MESSAGES: Dict[OrderStatus, str] = {
    OrderStatus.BAKING: "Cannot cancel order after baking has started",
    OrderStatus.DECORATING: "Cannot cancel order - already in decorating stage",
    OrderStatus.QUALITY_CHECK: "Cannot cancel order - already in quality check",
    OrderStatus.READY: "Cannot cancel order - already prepared and ready",
    OrderStatus.OUT_FOR_DELIVERY: "Cannot cancel order - already out for delivery",
    OrderStatus.DELIVERED: "Order has already been delivered",
    OrderStatus.PICKED_UP: "Order has already been picked up",
    OrderStatus.CANCELLED: "Order is already cancelled",
    OrderStatus.REFUNDED: "Order has already been refunded",
}

COMPLETED_STATUSES = (OrderStatus.DELIVERED, OrderStatus.PICKED_UP)
SILENT_STATUSES = (OrderStatus.RECEIVED, OrderStatus.CONFIRMED)
STAFF_ROLES = ("super_admin", "admin", "manager", "staff")


def _email_items(details: OrderWithDetails) -> List[EmailItem]:
    return [
        EmailItem(
            product_name=item.product_name,
            variant_name=item.variant_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
        )
        for item in details.items
    ]


def _email_time_slot(details: OrderWithDetails) -> Optional[EmailTimeSlot]:
    if not details.slot_date or not details.slot_window:
        return None
    start, _, end = details.slot_window.partition(" - ")
    return EmailTimeSlot(date=details.slot_date, window_start=start, window_end=end)


class OrderWorkflowService:
    """
    Status execution on top of the pure rules in domain.order_workflow

    Usage:
        service = OrderWorkflowService()
        service.update_order_status(order_id, OrderStatus.BAKING, changed_by=user.id)
    """

    def __init__(
        self,
        orders: Optional[OrderRepository] = None,
        delivery: Optional[DeliveryRepository] = None,
        email: Optional[EmailService] = None,
    ):
        self.orders = orders or OrderRepository()
        self.delivery = delivery or DeliveryRepository()
        self.email = email or EmailService()

    # ------------------------------------------------------------------
    # Status updates
    # ------------------------------------------------------------------

    def update_order_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        notes: Optional[str] = None,
        changed_by: Optional[str] = None,
    ) -> OrderWithDetails:
        """
        Move an order to new_status

        Raises:
            NotFoundError: order does not exist
            ValidationError: transition not allowed
        """
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")

        check = validate_transition(order.status, new_status)
        if not check.valid:
            raise ValidationError(check.error)

        extra: Dict[str, Any] = {}
        if new_status in COMPLETED_STATUSES:
            extra["completed_at"] = datetime.now(timezone.utc).isoformat()

        self.orders.update_status(order_id, new_status, **extra)
        self.orders.add_status_history(order_id, new_status, notes, changed_by)
        logger.info(f"Order {order.order_number}: {order.status.value} -> {new_status.value}")

        details = self.orders.with_details(order.model_copy(update={"status": new_status}))
        self._notify(details, new_status)
        return details

    def _notify(self, details: OrderWithDetails, status: OrderStatus) -> None:
        """Send the customer email for a status; failures are only logged"""
        if status in SILENT_STATUSES:
            return

        if not details.customer_email:
            logger.warning(f"No customer email for order {details.order_number}, skipping notification")
            return

        name = details.customer_name or "Customer"
        try:
            if status == OrderStatus.READY:
                self.email.send_order_ready(OrderReadyData(
                    order_number=details.order_number,
                    customer_name=name,
                    customer_email=details.customer_email,
                    fulfillment_type=details.fulfillment_type,
                    items=_email_items(details),
                    delivery_address=details.address_line(),
                    delivery_eta=get_estimated_time_remaining(status, details.fulfillment_type),
                    pickup_location=details.pickup_location,
                    time_slot=_email_time_slot(details),
                ))
            else:
                self.email.send_status_update(StatusUpdateData(
                    order_number=details.order_number,
                    customer_name=name,
                    customer_email=details.customer_email,
                    status=status,
                    fulfillment_type=details.fulfillment_type,
                    estimated_time=get_estimated_time_remaining(status, details.fulfillment_type),
                    pickup_location=details.pickup_location,
                ))
        except Exception as e:
            logger.error(f"Failed to send {status.value} email for order {details.order_number}: {e}")

    def update_internal_notes(self, order_id: str, internal_notes: str) -> None:
        if self.orders.find_by_id(order_id) is None:
            raise NotFoundError("Order not found")
        self.orders.update(order_id, {"internal_notes": internal_notes})

    # ------------------------------------------------------------------
    # Customer cancellation
    # ------------------------------------------------------------------

    def cancel_order(
        self,
        order_id: str,
        user: Optional[TokenUser] = None,
        email: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Cancel an order on behalf of its customer

        Registered orders need the owning user; guest orders need the
        order email. Slot release, inventory restore and history writes
        are best effort.
        """
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")

        if order.is_guest:
            if not email:
                raise ValidationError("Email is required to cancel guest orders")
            if (order.guest_email or "").lower() != email.strip().lower():
                raise UnauthorizedError("Unauthorized: Email does not match order")
        elif user is None or user.id != order.user_id:
            raise UnauthorizedError("Unauthorized: You do not have permission to cancel this order")

        if order.status not in CUSTOMER_CANCELLABLE:
            raise ValidationError(
                CANCEL_BLOCKED_MESSAGES.get(order.status, "Cannot cancel order at this stage")
            )

        self.orders.update_status(order_id, OrderStatus.CANCELLED)

        if order.time_slot_id and not self.delivery.release_time_slot(order.time_slot_id):
            logger.warning(f"Time slot {order.time_slot_id} not released for order {order.order_number}")

        if not self.orders.restore_inventory(order_id):
            logger.warning(f"Inventory not restored for order {order.order_number}")

        self.orders.add_status_history(
            order_id,
            OrderStatus.CANCELLED,
            notes=reason or "Cancelled by customer",
            changed_by=user.id if user else None,
        )
        logger.info(f"Order {order.order_number} cancelled by customer")

        return {
            "success": True,
            "message": "Order cancelled successfully",
            "order_id": order_id,
            "order_number": order.order_number,
        }

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track_order(
        self,
        order_number: str,
        email: Optional[str] = None,
        user: Optional[TokenUser] = None,
    ) -> Dict[str, Any]:
        """
        Order details plus progress information for the tracking page

        Guest orders match on email; registered orders need their owner
        (or staff). Mismatches look exactly like a missing order.
        """
        order = self.orders.find_by_number(order_number)
        if order is None:
            raise NotFoundError("Order not found")

        if user is not None and user.role in STAFF_ROLES:
            allowed = True
        elif order.is_guest:
            allowed = bool(email) and (order.guest_email or "").lower() == email.strip().lower()
        else:
            allowed = user is not None and user.id == order.user_id

        if not allowed:
            raise NotFoundError("Order not found")

        details = self.orders.with_details(order)
        return {
            "order": details.to_dict(),
            "status_info": get_status_info(order.status).model_dump(),
            "progress": get_order_progress(order.status),
            "estimated_time_remaining": get_estimated_time_remaining(
                order.status, order.fulfillment_type or FulfillmentType.PICKUP
            ),
            "can_cancel": order.status in CUSTOMER_CANCELLABLE,
        }

    def get_user_orders(self, user_id: str) -> List[Dict[str, Any]]:
        return [
            {
                **order.model_dump(mode="json"),
                "progress": get_order_progress(order.status),
                "status_info": get_status_info(order.status).model_dump(),
            }
            for order in self.orders.find_by_user(user_id)
        ]
