"""
Delivery Domain Models

Delivery zones, time slots and blackout dates as stored in Supabase,
plus the read-only results computed from them.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta
from enum import Enum


class SlotType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"
    BOTH = "both"


class DeliveryZone(BaseModel):
    """
    Delivery zone - a geographic band with its own minimum order and fee

    Stored zones are keyed by ZIP codes; the built-in default zones are
    keyed by radius band instead (min_radius_miles <= d < max_radius_miles).
    """
    id: int
    name: str
    description: Optional[str] = None
    zip_codes: List[str] = Field(default_factory=list)
    min_radius_miles: Optional[float] = None
    max_radius_miles: Optional[float] = None
    min_order_amount: float = Field(0, ge=0)
    delivery_fee: float = Field(0, ge=0)
    free_delivery_threshold: Optional[float] = Field(None, description="Subtotal at which delivery becomes free")
    estimated_time_minutes: Optional[int] = None
    is_active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DeliveryZoneInput(BaseModel):
    """Admin create/update payload for a zone"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    zip_codes: List[str] = Field(default_factory=list)
    min_order_amount: float = Field(0, ge=0)
    delivery_fee: float = Field(0, ge=0)
    free_delivery_threshold: Optional[float] = Field(None, ge=0)
    estimated_time_minutes: int = Field(60, ge=0)
    is_active: bool = True
    sort_order: int = 0


class TimeSlot(BaseModel):
    """A bounded-capacity pickup/delivery window on a date"""
    id: str
    date: str
    window_start: str
    window_end: str
    slot_type: SlotType = SlotType.BOTH
    max_orders: int = Field(10, ge=0)
    current_orders: int = Field(0, ge=0)
    is_available: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def has_capacity(self) -> bool:
        return self.current_orders < self.max_orders

    @property
    def slots_remaining(self) -> int:
        return max(0, self.max_orders - self.current_orders)

    @property
    def window(self) -> str:
        """Window as shown to customers and stored on orders ("HH:MM - HH:MM")"""
        return f"{self.window_start} - {self.window_end}"


class TimeSlotTemplate(BaseModel):
    """One window to stamp onto every date when generating slots"""
    window_start: str
    window_end: str
    slot_type: SlotType = SlotType.BOTH
    max_orders: int = Field(10, ge=1)


class TimeSlotUpdate(BaseModel):
    max_orders: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None
    slot_type: Optional[SlotType] = None


class BlackoutDate(BaseModel):
    """A date the bakery is closed"""
    id: str
    date: str
    reason: Optional[str] = None
    created_at: Optional[datetime] = None


class PickupLocation(BaseModel):
    """A place customers can collect pickup orders"""
    id: str
    name: str
    address: str
    city: str
    state: str
    zip: str
    instructions: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PickupLocationInput(BaseModel):
    """Admin create payload for a pickup location"""
    name: str = Field(..., min_length=2)
    address: str = Field(..., min_length=5)
    city: str = Field(..., min_length=2)
    state: str = Field("CA", min_length=2)
    zip: str = Field(..., min_length=5)
    instructions: Optional[str] = None
    is_active: bool = True
    sort_order: int = Field(0, ge=0)


class PickupLocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    address: Optional[str] = Field(None, min_length=5)
    city: Optional[str] = Field(None, min_length=2)
    state: Optional[str] = Field(None, min_length=2)
    zip: Optional[str] = Field(None, min_length=5)
    instructions: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)


class SlotAvailability(BaseModel):
    available: bool
    slots_remaining: int = 0


class DeliverySummary(BaseModel):
    """Checkout display summary for a zone and subtotal"""
    can_deliver: bool
    fee: float
    message: str
    amount_to_free_delivery: Optional[float] = None


def dates_in_range(start_date: str, end_date: str) -> List[str]:
    """Every ISO date from start_date through end_date inclusive"""
    start = datetime.fromisoformat(start_date).date()
    end = datetime.fromisoformat(end_date).date()
    days = (end - start).days
    return [(start + timedelta(days=offset)).isoformat() for offset in range(days + 1)]


def expand_slot_templates(
    start_date: str,
    end_date: str,
    templates: List[TimeSlotTemplate],
) -> List[Dict[str, Any]]:
    """Rows for the time_slots table, one per template per date"""
    return [
        {
            "date": day,
            "window_start": template.window_start,
            "window_end": template.window_end,
            "slot_type": template.slot_type.value,
            "max_orders": template.max_orders,
            "current_orders": 0,
            "is_available": True,
        }
        for day in dates_in_range(start_date, end_date)
        for template in templates
    ]
