"""
Admin API - Back-office Endpoints
Order management, production planning, delivery zones, time slots,
pickup locations, discount codes and business settings

Staff can work orders and production; zones, slots, pickup locations,
discounts and settings need the admin role.

Author: TM3
Date: 2025-11-12
"""
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from sourdough.api.deps import (
    get_business_settings,
    get_discount_service,
    get_order_repository,
    get_order_workflow_service,
    get_pickup_location_repository,
    get_settings_repository,
    get_zone_repository,
)
from sourdough.core.auth import TokenUser, require_admin, require_staff
from sourdough.domain.delivery import (
    DeliveryZoneInput,
    PickupLocationInput,
    PickupLocationUpdate,
    TimeSlotTemplate,
    TimeSlotUpdate,
)
from sourdough.domain.discount import DiscountCodeCreate, DiscountCodeUpdate
from sourdough.domain.order import FulfillmentType, OrderFilters, OrderStatus
from sourdough.domain.order_workflow import get_next_statuses, get_order_progress, get_status_info
from sourdough.domain.settings import BUSINESS_INFO_KEYS, OperatingHours, TaxSettings
from sourdough.repositories.order_repository import OrderRepository
from sourdough.repositories.pickup_repository import PickupLocationRepository
from sourdough.repositories.settings_repository import SettingsRepository
from sourdough.repositories.zone_repository import ZoneRepository
from sourdough.services.business_settings_service import BusinessSettingsService
from sourdough.services.discount_service import DiscountService
from sourdough.services.order_workflow_service import OrderWorkflowService

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request models
# ============================================================================

class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=1000)


class InternalNotesRequest(BaseModel):
    internal_notes: str = Field(..., max_length=5000)


class ZoneUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    zip_codes: Optional[List[str]] = None
    min_order_amount: Optional[float] = Field(None, ge=0)
    delivery_fee: Optional[float] = Field(None, ge=0)
    free_delivery_threshold: Optional[float] = Field(None, ge=0)
    estimated_time_minutes: Optional[int] = Field(None, ge=0)
    sort_order: Optional[int] = None


class ZoneToggleRequest(BaseModel):
    is_active: bool


class GenerateSlotsRequest(BaseModel):
    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: str = Field(..., description="YYYY-MM-DD")
    templates: List[TimeSlotTemplate] = Field(..., min_length=1)


# ============================================================================
# Orders
# ============================================================================

@router.get("/orders")
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    fulfillment_type: Optional[FulfillmentType] = Query(None, description="pickup or delivery"),
    date_from: Optional[str] = Query(None, description="Created on/after (ISO format)"),
    date_to: Optional[str] = Query(None, description="Created on/before (ISO format)"),
    search: Optional[str] = Query(None, description="Order number or guest email"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: TokenUser = Depends(require_staff),
    repo: OrderRepository = Depends(get_order_repository),
):
    """Orders newest first with filters and pagination"""
    filters = OrderFilters(
        status=status,
        fulfillment_type=fulfillment_type,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    orders, total = repo.find_all(filters, page=page, per_page=per_page)

    return {
        "status": "success",
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": (total + per_page - 1) // per_page,
        "count": len(orders),
        "data": [order.model_dump(mode="json") for order in orders],
    }


@router.get("/orders/stats")
async def order_stats(
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    user: TokenUser = Depends(require_staff),
    repo: OrderRepository = Depends(get_order_repository),
):
    """Order counts per status plus total"""
    return {"status": "success", "data": repo.count_by_status(date_from, date_to)}


@router.get("/orders/{order_id}")
async def get_order(
    order_id: str,
    user: TokenUser = Depends(require_staff),
    repo: OrderRepository = Depends(get_order_repository),
):
    """Order with items, status history, customer contact and allowed next statuses"""
    details = repo.find_with_details(order_id)
    if not details:
        raise HTTPException(status_code=404, detail="Order not found")

    return {
        "status": "success",
        "data": details.to_dict(),
        "status_info": get_status_info(details.status).model_dump(),
        "progress": get_order_progress(details.status),
        "next_statuses": [s.value for s in get_next_statuses(details.status)],
    }


@router.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    request: StatusUpdateRequest,
    user: TokenUser = Depends(require_staff),
    service: OrderWorkflowService = Depends(get_order_workflow_service),
):
    """Move an order along the workflow; invalid transitions return 400"""
    details = service.update_order_status(order_id, request.status, request.notes, changed_by=user.id)
    return {
        "status": "success",
        "message": f"Order status updated to {request.status.value}",
        "data": details.to_dict(),
    }


@router.patch("/orders/{order_id}/notes")
async def update_internal_notes(
    order_id: str,
    request: InternalNotesRequest,
    user: TokenUser = Depends(require_staff),
    service: OrderWorkflowService = Depends(get_order_workflow_service),
):
    service.update_internal_notes(order_id, request.internal_notes)
    return {"status": "success", "message": "Notes updated"}


# ============================================================================
# Production
# ============================================================================

@router.get("/production")
async def production_list(
    date: str = Query(..., description="Fulfillment date (YYYY-MM-DD)"),
    user: TokenUser = Depends(require_staff),
    repo: OrderRepository = Depends(get_order_repository),
):
    """
    What to bake for a date

    Quantities aggregated per product/variant across every order in that
    date's time slots, excluding cancelled and refunded orders.
    """
    try:
        production = repo.get_production_list(date)
    except Exception as e:
        logger.error(f"Error building production list for {date}: {e}")
        raise HTTPException(status_code=500, detail=f"Error building production list: {str(e)}")

    return {"status": "success", "data": production.model_dump()}


# ============================================================================
# Delivery zones
# ============================================================================

@router.get("/zones")
async def list_zones(
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    zones = repo.list_zones()
    return {"status": "success", "count": len(zones), "data": [z.model_dump(mode="json") for z in zones]}


@router.post("/zones", status_code=201)
async def create_zone(
    request: DeliveryZoneInput,
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    zone = repo.create_zone(request)
    return {"status": "success", "data": zone.model_dump(mode="json")}


@router.patch("/zones/{zone_id}")
async def update_zone(
    zone_id: int,
    request: ZoneUpdateRequest,
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    zone = repo.update_zone(zone_id, updates)
    return {"status": "success", "data": zone.model_dump(mode="json")}


@router.post("/zones/{zone_id}/toggle")
async def toggle_zone(
    zone_id: int,
    request: ZoneToggleRequest,
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    zone = repo.toggle_zone_active(zone_id, request.is_active)
    return {"status": "success", "data": zone.model_dump(mode="json")}


@router.delete("/zones/{zone_id}")
async def delete_zone(
    zone_id: int,
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    repo.delete_zone(zone_id)
    return {"status": "success", "message": "Zone deleted"}


# ============================================================================
# Time slots
# ============================================================================

@router.post("/slots/generate", status_code=201)
async def generate_slots(
    request: GenerateSlotsRequest,
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    """Stamp the templates onto every date from start_date to end_date"""
    if request.end_date < request.start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")

    created = repo.generate_time_slots(request.start_date, request.end_date, request.templates)
    return {"status": "success", "created": created}


@router.get("/slots")
async def slots_for_date(
    date: str = Query(..., description="YYYY-MM-DD"),
    user: TokenUser = Depends(require_staff),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    """Every slot on a date, including full and closed ones"""
    slots = repo.get_time_slots_for_date(date)
    return {
        "status": "success",
        "count": len(slots),
        "data": [
            {**slot.model_dump(mode="json"), "slots_remaining": slot.slots_remaining}
            for slot in slots
        ],
    }


@router.patch("/slots/{slot_id}")
async def update_slot(
    slot_id: str,
    request: TimeSlotUpdate,
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    slot = repo.update_time_slot(slot_id, request)
    return {"status": "success", "data": slot.model_dump(mode="json")}


@router.delete("/slots")
async def delete_slots(
    start_date: str = Query(...),
    end_date: str = Query(...),
    user: TokenUser = Depends(require_admin),
    repo: ZoneRepository = Depends(get_zone_repository),
):
    deleted = repo.delete_time_slots_for_range(start_date, end_date)
    return {"status": "success", "deleted": deleted}


# ============================================================================
# Pickup locations
# ============================================================================

@router.get("/pickup-locations")
async def list_pickup_locations(
    user: TokenUser = Depends(require_admin),
    repo: PickupLocationRepository = Depends(get_pickup_location_repository),
):
    """Every location, active or not"""
    locations = repo.list_all()
    return {"status": "success", "count": len(locations), "data": [loc.model_dump(mode="json") for loc in locations]}


@router.post("/pickup-locations", status_code=201)
async def create_pickup_location(
    request: PickupLocationInput,
    user: TokenUser = Depends(require_admin),
    repo: PickupLocationRepository = Depends(get_pickup_location_repository),
):
    location = repo.create(request)
    return {"status": "success", "data": location.model_dump(mode="json")}


@router.patch("/pickup-locations/{location_id}")
async def update_pickup_location(
    location_id: str,
    request: PickupLocationUpdate,
    user: TokenUser = Depends(require_admin),
    repo: PickupLocationRepository = Depends(get_pickup_location_repository),
):
    if not request.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    location = repo.update(location_id, request)
    return {"status": "success", "data": location.model_dump(mode="json")}


@router.delete("/pickup-locations/{location_id}")
async def delete_pickup_location(
    location_id: str,
    user: TokenUser = Depends(require_admin),
    repo: PickupLocationRepository = Depends(get_pickup_location_repository),
):
    repo.delete(location_id)
    return {"status": "success", "message": "Pickup location deleted"}


# ============================================================================
# Discount codes
# ============================================================================

@router.get("/discounts")
async def list_discounts(
    user: TokenUser = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
):
    codes = service.list_codes()
    return {"status": "success", "count": len(codes), "data": [c.model_dump(mode="json") for c in codes]}


@router.post("/discounts", status_code=201)
async def create_discount(
    request: DiscountCodeCreate,
    user: TokenUser = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
):
    discount = service.create_code(request)
    return {"status": "success", "data": discount.model_dump(mode="json")}


@router.patch("/discounts/{discount_id}")
async def update_discount(
    discount_id: str,
    request: DiscountCodeUpdate,
    user: TokenUser = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
):
    discount = service.update_code(discount_id, request)
    return {"status": "success", "data": discount.model_dump(mode="json")}


@router.delete("/discounts/{discount_id}")
async def delete_discount(
    discount_id: str,
    user: TokenUser = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
):
    service.delete_code(discount_id)
    return {"status": "success", "message": "Discount code deleted"}


# ============================================================================
# Business settings
# ============================================================================

SETTING_MODELS = {
    "tax_settings": TaxSettings,
    "operating_hours": OperatingHours,
}


@router.put("/settings/{key}")
async def update_setting(
    key: str,
    value: Any = Body(...),
    user: TokenUser = Depends(require_admin),
    repo: SettingsRepository = Depends(get_settings_repository),
    business: BusinessSettingsService = Depends(get_business_settings),
):
    """
    Replace one business setting

    tax_settings and operating_hours are validated against their models;
    business info keys must be strings.
    """
    if key in SETTING_MODELS:
        try:
            stored = SETTING_MODELS[key](**value).model_dump(mode="json")
        except (PydanticValidationError, TypeError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid {key}: {str(e)}")
    elif key in BUSINESS_INFO_KEYS:
        if not isinstance(value, str):
            raise HTTPException(status_code=400, detail=f"{key} must be a string")
        stored = value
    else:
        raise HTTPException(status_code=404, detail=f"Unknown setting: {key}")

    repo.set_value(key, stored)
    business.clear_cache()
    logger.info(f"Setting {key} updated by {user.email}")

    return {"status": "success", "key": key, "value": stored}
