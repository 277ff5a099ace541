"""
Business settings models

Values stored as JSON under keys of the `business_settings` table.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from enum import Enum


DEFAULT_TAX_RATE = 0.08

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class TaxType(str, Enum):
    FLAT = "flat"
    BY_ZONE = "by_zone"
    BY_DISTANCE = "by_distance"


class ZoneTaxRate(BaseModel):
    zone_id: str
    rate: float = Field(..., ge=0)


class TaxSettings(BaseModel):
    """Value of the `tax_settings` key"""
    type: TaxType = TaxType.FLAT
    rate: float = Field(DEFAULT_TAX_RATE, ge=0)
    name: str = "Sales Tax"
    zones: List[ZoneTaxRate] = Field(default_factory=list)


class BusinessInfo(BaseModel):
    business_name: str = "Happy Sourdough"
    business_phone: str = "+1 (555) 123-4567"
    business_email: str = "hello@happysourdough.com"
    business_address: str = "123 Bakery Lane, San Francisco, CA 94102"


BUSINESS_INFO_KEYS = list(BusinessInfo.model_fields.keys())


class DayHours(BaseModel):
    open: str = "07:00"
    close: str = "19:00"
    closed: bool = False


def _hours(open_: str, close: str) -> DayHours:
    return DayHours(open=open_, close=close)


class OperatingHours(BaseModel):
    """Value of the `operating_hours` key, one entry per weekday"""
    monday: DayHours = Field(default_factory=lambda: _hours("07:00", "19:00"))
    tuesday: DayHours = Field(default_factory=lambda: _hours("07:00", "19:00"))
    wednesday: DayHours = Field(default_factory=lambda: _hours("07:00", "19:00"))
    thursday: DayHours = Field(default_factory=lambda: _hours("07:00", "19:00"))
    friday: DayHours = Field(default_factory=lambda: _hours("07:00", "19:00"))
    saturday: DayHours = Field(default_factory=lambda: _hours("08:00", "17:00"))
    sunday: DayHours = Field(default_factory=lambda: _hours("08:00", "14:00"))

    def by_day(self) -> Dict[str, DayHours]:
        return {day: getattr(self, day) for day in WEEKDAYS}


def format_time_12h(time24: str) -> str:
    """"19:00" -> "7:00 PM" """
    hours, minutes = time24.split(":")[:2]
    hour = int(hours)
    ampm = "PM" if hour >= 12 else "AM"
    hour12 = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{hour12}:{minutes} {ampm}"


def format_operating_hours(hours: OperatingHours) -> str:
    """
    Human-readable operating hours, grouping consecutive days with the same hours.

    Example:
        Monday - Friday: 7:00 AM - 7:00 PM
        Saturday: 8:00 AM - 5:00 PM
        Sunday: 8:00 AM - 2:00 PM
    """
    groups: List[List[str]] = []
    group_hours: List[str] = []

    for day, day_hours in hours.by_day().items():
        if day_hours.closed:
            hours_str = "Closed"
        else:
            hours_str = f"{format_time_12h(day_hours.open)} - {format_time_12h(day_hours.close)}"

        if group_hours and group_hours[-1] == hours_str:
            groups[-1].append(day.capitalize())
        else:
            groups.append([day.capitalize()])
            group_hours.append(hours_str)

    lines = []
    for days, hours_str in zip(groups, group_hours):
        days_str = f"{days[0]} - {days[-1]}" if len(days) > 1 else days[0]
        lines.append(f"{days_str}: {hours_str}")

    return "\n".join(lines)


class TaxRateResponse(BaseModel):
    rate: float
    percentage: str
    name: Optional[str] = None
