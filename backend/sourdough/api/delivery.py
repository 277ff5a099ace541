"""
Delivery API Endpoints
Zones, fee estimates, time slots and blackout dates for checkout scheduling

Author: TM3
Date: 2025-10-22
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from sourdough.api.deps import get_delivery_repository, get_pickup_location_repository
from sourdough.domain.delivery_zones import (
    format_delivery_time,
    get_delivery_summary,
    get_estimated_delivery_time,
    get_zone_by_distance,
    is_within_service_area,
)
from sourdough.domain.order import FulfillmentType
from sourdough.repositories.delivery_repository import DeliveryRepository
from sourdough.repositories.pickup_repository import PickupLocationRepository

router = APIRouter()


@router.get("/zones")
async def list_zones(repo: DeliveryRepository = Depends(get_delivery_repository)):
    """Active delivery zones in display order"""
    zones = repo.get_all_zones()
    return {
        "status": "success",
        "count": len(zones),
        "data": [zone.model_dump(mode="json") for zone in zones],
    }


@router.get("/zones/lookup")
async def lookup_zone(
    zip: str = Query(..., min_length=3, description="Delivery ZIP code"),
    subtotal: float = Query(0, ge=0, description="Cart subtotal"),
    repo: DeliveryRepository = Depends(get_delivery_repository),
):
    """
    Resolve the zone for a ZIP and summarize fee and minimum for the cart

    An unknown ZIP is not an error: the summary says the address is
    outside the delivery area.
    """
    zone = repo.get_zone_by_zip(zip.strip())
    summary = get_delivery_summary(zone, subtotal)

    return {
        "status": "success",
        "zone": zone.model_dump(mode="json") if zone else None,
        "summary": summary.model_dump(),
        "estimated_time": format_delivery_time(get_estimated_delivery_time(zone)) if zone else None,
    }


@router.get("/estimate")
async def estimate_by_distance(
    distance_miles: float = Query(..., ge=0),
    subtotal: float = Query(0, ge=0),
):
    """Fee estimate from distance using the default radius bands"""
    zone = get_zone_by_distance(distance_miles)
    summary = get_delivery_summary(zone, subtotal)

    return {
        "status": "success",
        "within_service_area": is_within_service_area(distance_miles),
        "zone": zone.model_dump(mode="json") if zone else None,
        "summary": summary.model_dump(),
    }


@router.get("/slots")
async def available_slots(
    date: str = Query(..., description="Date (YYYY-MM-DD)"),
    fulfillment_type: FulfillmentType = Query(FulfillmentType.DELIVERY),
    repo: DeliveryRepository = Depends(get_delivery_repository),
):
    """Slots on a date that still have capacity"""
    slots = repo.get_available_time_slots(date, fulfillment_type)
    return {
        "status": "success",
        "count": len(slots),
        "data": [
            {**slot.model_dump(mode="json"), "slots_remaining": slot.slots_remaining}
            for slot in slots
        ],
    }


@router.get("/slots/range")
async def slots_for_range(
    start_date: str = Query(..., description="Start date (YYYY-MM-DD)"),
    end_date: str = Query(..., description="End date (YYYY-MM-DD)"),
    fulfillment_type: Optional[FulfillmentType] = Query(None),
    repo: DeliveryRepository = Depends(get_delivery_repository),
):
    """Slots with capacity across a date range, grouped by date"""
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")

    slots = repo.get_time_slots_for_range(start_date, end_date, fulfillment_type)

    by_date = {}
    for slot in slots:
        by_date.setdefault(slot.date, []).append(slot.model_dump(mode="json"))

    return {
        "status": "success",
        "count": len(slots),
        "data": by_date,
    }


@router.get("/slots/{slot_id}/availability")
async def slot_availability(
    slot_id: str,
    repo: DeliveryRepository = Depends(get_delivery_repository),
):
    availability = repo.check_slot_availability(slot_id)
    return {"status": "success", "data": availability.model_dump()}


@router.get("/blackout-dates")
async def blackout_dates(repo: DeliveryRepository = Depends(get_delivery_repository)):
    """Upcoming dates the bakery is closed"""
    dates = repo.get_blackout_dates()
    return {
        "status": "success",
        "count": len(dates),
        "data": [d.model_dump(mode="json") for d in dates],
    }


@router.get("/pickup-locations")
async def pickup_locations(repo: PickupLocationRepository = Depends(get_pickup_location_repository)):
    """Active pickup locations for the checkout selector"""
    locations = repo.get_active()
    return {
        "status": "success",
        "count": len(locations),
        "data": [loc.model_dump(mode="json") for loc in locations],
    }
