"""
Order Workflow Rules

Static transition table for the order lifecycle plus the lookup helpers
the storefront and back-office use (progress bar, time estimates,
status labels). Everything here is pure: persisting a new status and
notifying the customer happen in services.order_workflow_service.
"""
from typing import Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel

from sourdough.domain.order import OrderStatus, FulfillmentType

S = OrderStatus

INITIAL_STATUS = S.RECEIVED

STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    S.RECEIVED: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.BAKING, S.CANCELLED, S.REFUNDED}),
    S.BAKING: frozenset({S.DECORATING, S.QUALITY_CHECK, S.CANCELLED}),
    S.DECORATING: frozenset({S.QUALITY_CHECK, S.CANCELLED}),
    # back to baking for rework
    S.QUALITY_CHECK: frozenset({S.READY, S.BAKING}),
    S.READY: frozenset({S.OUT_FOR_DELIVERY, S.PICKED_UP, S.CANCELLED}),
    # ready = returned to store
    S.OUT_FOR_DELIVERY: frozenset({S.DELIVERED, S.READY}),
    S.DELIVERED: frozenset({S.REFUNDED}),
    S.PICKED_UP: frozenset({S.REFUNDED}),
    S.CANCELLED: frozenset(),
    S.REFUNDED: frozenset(),
}

# Declaration order of next statuses, for stable UI ordering
_NEXT_ORDER: List[OrderStatus] = list(OrderStatus)


class StatusInfo(BaseModel):
    label: str
    description: str
    color: str
    icon: str


STATUS_CONFIG: Dict[OrderStatus, StatusInfo] = {
    S.RECEIVED: StatusInfo(
        label="Order Received",
        description="Your order has been received and is awaiting confirmation",
        color="bg-blue-100 text-blue-800",
        icon="inbox",
    ),
    S.CONFIRMED: StatusInfo(
        label="Confirmed",
        description="Your order has been confirmed and scheduled for production",
        color="bg-indigo-100 text-indigo-800",
        icon="check-circle",
    ),
    S.BAKING: StatusInfo(
        label="Baking",
        description="Your items are being freshly baked",
        color="bg-orange-100 text-orange-800",
        icon="flame",
    ),
    S.DECORATING: StatusInfo(
        label="Decorating",
        description="Adding the finishing touches to your order",
        color="bg-pink-100 text-pink-800",
        icon="sparkles",
    ),
    S.QUALITY_CHECK: StatusInfo(
        label="Quality Check",
        description="Ensuring everything meets our standards",
        color="bg-purple-100 text-purple-800",
        icon="clipboard-check",
    ),
    S.READY: StatusInfo(
        label="Ready",
        description="Your order is ready for pickup or delivery",
        color="bg-green-100 text-green-800",
        icon="package",
    ),
    S.OUT_FOR_DELIVERY: StatusInfo(
        label="Out for Delivery",
        description="Your order is on its way to you",
        color="bg-cyan-100 text-cyan-800",
        icon="truck",
    ),
    S.DELIVERED: StatusInfo(
        label="Delivered",
        description="Your order has been delivered. Enjoy!",
        color="bg-emerald-100 text-emerald-800",
        icon="check",
    ),
    S.PICKED_UP: StatusInfo(
        label="Picked Up",
        description="Your order has been picked up. Enjoy!",
        color="bg-emerald-100 text-emerald-800",
        icon="check",
    ),
    S.CANCELLED: StatusInfo(
        label="Cancelled",
        description="This order has been cancelled",
        color="bg-gray-100 text-gray-800",
        icon="x-circle",
    ),
    S.REFUNDED: StatusInfo(
        label="Refunded",
        description="This order has been refunded",
        color="bg-red-100 text-red-800",
        icon="rotate-ccw",
    ),
}

ORDER_PROGRESS: Dict[OrderStatus, int] = {
    S.RECEIVED: 10,
    S.CONFIRMED: 20,
    S.BAKING: 40,
    S.DECORATING: 60,
    S.QUALITY_CHECK: 70,
    S.READY: 85,
    S.OUT_FOR_DELIVERY: 95,
    S.DELIVERED: 100,
    S.PICKED_UP: 100,
    S.CANCELLED: 0,
    S.REFUNDED: 0,
}

_TIME_ESTIMATES: Dict[OrderStatus, str] = {
    S.RECEIVED: "2-3 hours",
    S.CONFIRMED: "1.5-2.5 hours",
    S.BAKING: "45-90 minutes",
    S.DECORATING: "30-60 minutes",
    S.QUALITY_CHECK: "15-30 minutes",
    S.OUT_FOR_DELIVERY: "15-30 minutes",
}

StatusLike = Union[OrderStatus, str]


class TransitionValidation(BaseModel):
    """Result of validate_transition"""
    valid: bool
    error: Optional[str] = None


_STATUS_VALUES = {status.value for status in OrderStatus}


def _status(value: StatusLike) -> OrderStatus:
    return value if isinstance(value, OrderStatus) else OrderStatus(value)


def can_transition(current_status: StatusLike, new_status: StatusLike) -> bool:
    """Check if new_status is a direct edge out of current_status"""
    return _status(new_status) in STATUS_TRANSITIONS[_status(current_status)]


def get_next_statuses(current_status: StatusLike) -> List[OrderStatus]:
    """Valid next statuses, in lifecycle order"""
    allowed = STATUS_TRANSITIONS[_status(current_status)]
    return [status for status in _NEXT_ORDER if status in allowed]


def is_terminal_status(status: StatusLike) -> bool:
    """Terminal statuses have no outgoing transitions"""
    return not STATUS_TRANSITIONS[_status(status)]


def can_cancel(status: StatusLike) -> bool:
    return S.CANCELLED in STATUS_TRANSITIONS[_status(status)]


def can_refund(status: StatusLike) -> bool:
    return S.REFUNDED in STATUS_TRANSITIONS[_status(status)]


def get_status_info(status: StatusLike) -> StatusInfo:
    return STATUS_CONFIG[_status(status)]


def get_order_progress(status: StatusLike) -> int:
    """Percentage for the order tracking progress bar"""
    return ORDER_PROGRESS[_status(status)]


def get_estimated_time_remaining(
    status: StatusLike,
    fulfillment_type: Union[FulfillmentType, str],
) -> Optional[str]:
    """
    Human-readable estimate of time left until the order reaches the customer.

    None once nothing is left to wait for (terminal, delivered, picked up).
    """
    status = _status(status)
    if is_terminal_status(status) or status in (S.DELIVERED, S.PICKED_UP):
        return None

    if status == S.READY:
        if FulfillmentType(fulfillment_type) == FulfillmentType.PICKUP:
            return "Ready now"
        return "30-45 minutes"

    return _TIME_ESTIMATES[status]


def validate_transition(current_status: StatusLike, new_status: StatusLike) -> TransitionValidation:
    """Validate a status change, returning the reason when it is not allowed"""
    try:
        current = _status(current_status)
        new = _status(new_status)
    except ValueError:
        bad = new_status if current_status in _STATUS_VALUES else current_status
        return TransitionValidation(valid=False, error=f"Unknown order status: {bad}")

    if current == new:
        return TransitionValidation(valid=False, error="Order is already in this status")

    if is_terminal_status(current):
        return TransitionValidation(
            valid=False,
            error=f"Cannot change status of {current.value} orders",
        )

    if not can_transition(current, new):
        return TransitionValidation(
            valid=False,
            error=f"Cannot transition from {current.value} to {new.value}",
        )

    return TransitionValidation(valid=True)
