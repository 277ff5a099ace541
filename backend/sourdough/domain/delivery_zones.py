"""
Delivery zone rules

Pure fee/minimum/threshold arithmetic. Works on the built-in radius
zones (DEFAULT_ZONES) and on zones loaded from the delivery_zones table,
which carry their own free_delivery_threshold and estimated_time_minutes.
"""
from typing import List, Optional

from sourdough.domain.delivery import DeliveryZone, DeliverySummary


DEFAULT_ZONES: List[DeliveryZone] = [
    DeliveryZone(
        id=1,
        name="Zone 1 - Downtown",
        min_radius_miles=0,
        max_radius_miles=3,
        min_order_amount=25,
        delivery_fee=0,
        estimated_time_minutes=30,
        sort_order=1,
    ),
    DeliveryZone(
        id=2,
        name="Zone 2 - Inner Suburbs",
        min_radius_miles=3,
        max_radius_miles=7,
        min_order_amount=40,
        delivery_fee=5,
        free_delivery_threshold=75,
        estimated_time_minutes=45,
        sort_order=2,
    ),
    DeliveryZone(
        id=3,
        name="Zone 3 - Outer Areas",
        min_radius_miles=7,
        max_radius_miles=12,
        min_order_amount=60,
        delivery_fee=10,
        free_delivery_threshold=100,
        estimated_time_minutes=60,
        sort_order=3,
    ),
]

DEFAULT_DELIVERY_MINUTES = 30


def get_zone_by_distance(distance_miles: float) -> Optional[DeliveryZone]:
    """First active default zone whose band contains the distance"""
    for zone in DEFAULT_ZONES:
        if (
            zone.is_active
            and zone.min_radius_miles <= distance_miles < zone.max_radius_miles
        ):
            return zone
    return None


def is_within_service_area(distance_miles: float) -> bool:
    max_radius = max(zone.max_radius_miles for zone in DEFAULT_ZONES)
    return distance_miles <= max_radius


def calculate_delivery_fee(zone: DeliveryZone, subtotal: float) -> float:
    """Flat zone fee, ignoring free-delivery thresholds"""
    if zone.delivery_fee == 0:
        return 0.0
    return zone.delivery_fee


def get_free_delivery_threshold(zone: DeliveryZone) -> Optional[float]:
    """
    Subtotal at which delivery becomes free.

    None means there is no threshold: either delivery is always free
    (zero fee) or the zone never waives its fee.
    """
    if zone.delivery_fee == 0:
        return None
    return zone.free_delivery_threshold


def calculate_actual_delivery_fee(zone: DeliveryZone, subtotal: float) -> float:
    """Zone fee after applying the free-delivery threshold"""
    if zone.delivery_fee == 0:
        return 0.0

    threshold = get_free_delivery_threshold(zone)
    if threshold is not None and subtotal >= threshold:
        return 0.0

    return zone.delivery_fee


def meets_minimum_order(zone: DeliveryZone, subtotal: float) -> bool:
    return subtotal >= zone.min_order_amount


def is_minimum_met(zone: DeliveryZone, subtotal: float) -> bool:
    return meets_minimum_order(zone, subtotal)


def get_amount_for_free_delivery(subtotal: float, zone: Optional[DeliveryZone] = None) -> float:
    """
    Amount still needed before delivery becomes free.

    Without a zone this is measured against the downtown zone minimum,
    the lowest order that ships for free anywhere.
    """
    if zone is None:
        target = DEFAULT_ZONES[0].min_order_amount
    else:
        target = get_free_delivery_threshold(zone)
        if target is None:
            return 0.0
    return max(0.0, target - subtotal)


def get_estimated_delivery_time(zone: DeliveryZone) -> int:
    """Estimated delivery time in minutes"""
    return zone.estimated_time_minutes or DEFAULT_DELIVERY_MINUTES


def format_delivery_time(minutes: int) -> str:
    """Format a duration for display, e.g. 90 -> "1 hour 30 minutes" """
    if minutes < 60:
        return f"{minutes} minutes"

    hours, remaining = divmod(minutes, 60)
    plural = "s" if hours > 1 else ""
    if remaining == 0:
        return f"{hours} hour{plural}"
    return f"{hours} hour{plural} {remaining} minutes"


def get_delivery_summary(zone: Optional[DeliveryZone], subtotal: float) -> DeliverySummary:
    """Deliverability, fee and customer message for the checkout page"""
    if zone is None:
        return DeliverySummary(
            can_deliver=False,
            fee=0,
            message="Address is outside our delivery area",
        )

    if not meets_minimum_order(zone, subtotal):
        needed = zone.min_order_amount - subtotal
        return DeliverySummary(
            can_deliver=False,
            fee=zone.delivery_fee,
            message=(
                f"Add ${needed:.2f} more to meet the "
                f"${zone.min_order_amount:g} minimum for {zone.name}"
            ),
        )

    fee = calculate_actual_delivery_fee(zone, subtotal)
    amount_to_free = None
    if fee > 0 and get_free_delivery_threshold(zone) is not None:
        amount_to_free = get_amount_for_free_delivery(subtotal, zone)

    if fee == 0:
        message = "Free delivery!"
    else:
        message = f"${fee:.2f} delivery fee for {zone.name}"

    return DeliverySummary(
        can_deliver=True,
        fee=fee,
        message=message,
        amount_to_free_delivery=amount_to_free,
    )
