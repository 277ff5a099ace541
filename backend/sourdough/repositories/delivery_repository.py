"""
Delivery Repository - zones, time slots and blackout dates

Public lookups never raise: Supabase failures are logged and turned
into None / empty results so the storefront keeps rendering.

Author: TM3
Date: 2025-10-22
"""
import logging
from datetime import date as date_type
from typing import List, Optional, Union

from sourdough.domain.delivery import (
    DeliveryZone,
    TimeSlot,
    BlackoutDate,
    SlotAvailability,
)
from sourdough.domain.order import FulfillmentType
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)


def _slot_type_filter(fulfillment_type: Union[FulfillmentType, str]) -> str:
    value = FulfillmentType(fulfillment_type).value
    return f"slot_type.eq.{value},slot_type.eq.both"


class DeliveryRepository(SupabaseRepository):
    """Read access to delivery scheduling tables plus slot reservations"""

    def get_zone_by_zip(self, zip_code: str) -> Optional[DeliveryZone]:
        """Active zone whose zip_codes contains the ZIP"""
        try:
            response = (
                self.client.table("delivery_zones")
                .select("*")
                .contains("zip_codes", [zip_code])
                .eq("is_active", True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching delivery zone for {zip_code}: {e}")
            return None

        row = self._first(response)
        return DeliveryZone(**row) if row else None

    def get_zone_by_id(self, zone_id: Union[int, str]) -> Optional[DeliveryZone]:
        try:
            response = self.client.table("delivery_zones").select("*").eq("id", zone_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching delivery zone {zone_id}: {e}")
            return None

        row = self._first(response)
        return DeliveryZone(**row) if row else None

    def get_all_zones(self) -> List[DeliveryZone]:
        """Active zones in display order"""
        try:
            response = (
                self.client.table("delivery_zones")
                .select("*")
                .eq("is_active", True)
                .order("sort_order")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching delivery zones: {e}")
            return []

        return [DeliveryZone(**row) for row in self._rows(response)]

    def get_available_time_slots(
        self,
        date: str,
        fulfillment_type: Union[FulfillmentType, str],
    ) -> List[TimeSlot]:
        """Open slots on a date for the fulfillment type that still have capacity"""
        try:
            response = (
                self.client.table("time_slots")
                .select("*")
                .eq("date", date)
                .eq("is_available", True)
                .or_(_slot_type_filter(fulfillment_type))
                .order("window_start")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching time slots for {date}: {e}")
            return []

        slots = [TimeSlot(**row) for row in self._rows(response)]
        return [slot for slot in slots if slot.has_capacity]

    def get_time_slots_for_range(
        self,
        start_date: str,
        end_date: str,
        fulfillment_type: Optional[Union[FulfillmentType, str]] = None,
    ) -> List[TimeSlot]:
        query = (
            self.client.table("time_slots")
            .select("*")
            .gte("date", start_date)
            .lte("date", end_date)
            .eq("is_available", True)
        )
        if fulfillment_type:
            query = query.or_(_slot_type_filter(fulfillment_type))

        try:
            response = query.order("date").order("window_start").execute()
        except Exception as e:
            logger.error(f"Error fetching time slots for {start_date}..{end_date}: {e}")
            return []

        slots = [TimeSlot(**row) for row in self._rows(response)]
        return [slot for slot in slots if slot.has_capacity]

    def get_blackout_dates(self, from_date: Optional[str] = None) -> List[BlackoutDate]:
        """Closed dates from today (or from_date) onwards"""
        from_date = from_date or date_type.today().isoformat()
        try:
            response = (
                self.client.table("blackout_dates")
                .select("*")
                .gte("date", from_date)
                .order("date")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching blackout dates: {e}")
            return []

        return [BlackoutDate(**row) for row in self._rows(response)]

    def get_slot(self, slot_id: str) -> Optional[TimeSlot]:
        try:
            response = self.client.table("time_slots").select("*").eq("id", slot_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching time slot {slot_id}: {e}")
            return None

        row = self._first(response)
        return TimeSlot(**row) if row else None

    def find_slot(self, date: str, window_start: str) -> Optional[TimeSlot]:
        """Open slot on a date starting at window_start"""
        try:
            response = (
                self.client.table("time_slots")
                .select("*")
                .eq("date", date)
                .eq("window_start", window_start)
                .eq("is_available", True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Error finding time slot {date} {window_start}: {e}")
            return None

        row = self._first(response)
        return TimeSlot(**row) if row else None

    def check_slot_availability(self, slot_id: str) -> SlotAvailability:
        try:
            response = (
                self.client.table("time_slots")
                .select("*")
                .eq("id", slot_id)
                .eq("is_available", True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error checking slot {slot_id}: {e}")
            return SlotAvailability(available=False, slots_remaining=0)

        row = self._first(response)
        if not row:
            return SlotAvailability(available=False, slots_remaining=0)

        slot = TimeSlot(**row)
        remaining = slot.max_orders - slot.current_orders
        return SlotAvailability(available=remaining > 0, slots_remaining=max(0, remaining))

    def reserve_time_slot(self, slot_id: str) -> bool:
        """
        Check capacity, then increment current_orders via RPC

        The check and the increment are separate calls; the
        increment_slot_orders procedure is what enforces the cap.
        """
        if not self.check_slot_availability(slot_id).available:
            return False

        try:
            self.client.rpc("increment_slot_orders", {"slot_id": slot_id}).execute()
        except Exception as e:
            logger.error(f"Error reserving time slot {slot_id}: {e}")
            return False

        return True

    def release_time_slot(self, slot_id: str) -> bool:
        try:
            self.client.rpc("decrement_slot_orders", {"slot_id": slot_id}).execute()
        except Exception as e:
            logger.error(f"Error releasing time slot {slot_id}: {e}")
            return False

        return True
