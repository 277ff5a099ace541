"""
Zone Repository - admin management of delivery zones and time slots

Unlike the storefront lookups in DeliveryRepository, every method here
raises RepositoryError on failure so the admin UI can report it.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from sourdough.core.errors import NotFoundError, RepositoryError
from sourdough.domain.delivery import (
    DeliveryZone,
    DeliveryZoneInput,
    TimeSlot,
    TimeSlotTemplate,
    TimeSlotUpdate,
    expand_slot_templates,
)
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)

ZoneId = Union[int, str]


class ZoneRepository(SupabaseRepository):

    def list_zones(self) -> List[DeliveryZone]:
        """All zones, active or not, in display order"""
        try:
            response = self.client.table("delivery_zones").select("*").order("sort_order").execute()
        except Exception as e:
            logger.error(f"Error fetching zones: {e}")
            raise RepositoryError("Failed to fetch delivery zones")

        return [DeliveryZone(**row) for row in self._rows(response)]

    def get_zone(self, zone_id: ZoneId) -> Optional[DeliveryZone]:
        try:
            response = self.client.table("delivery_zones").select("*").eq("id", zone_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching zone {zone_id}: {e}")
            raise RepositoryError("Failed to fetch delivery zone")

        row = self._first(response)
        return DeliveryZone(**row) if row else None

    def create_zone(self, data: DeliveryZoneInput) -> DeliveryZone:
        try:
            response = self.client.table("delivery_zones").insert(data.model_dump()).execute()
        except Exception as e:
            logger.error(f"Error creating zone: {e}")
            raise RepositoryError("Failed to create delivery zone")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to create delivery zone")
        logger.info(f"Created delivery zone {row.get('id')}: {data.name}")
        return DeliveryZone(**row)

    def update_zone(self, zone_id: ZoneId, updates: Dict[str, Any]) -> DeliveryZone:
        try:
            response = self.client.table("delivery_zones").update(updates).eq("id", zone_id).execute()
        except Exception as e:
            logger.error(f"Error updating zone {zone_id}: {e}")
            raise RepositoryError("Failed to update delivery zone")

        row = self._first(response)
        if not row:
            raise NotFoundError("Delivery zone not found")
        return DeliveryZone(**row)

    def toggle_zone_active(self, zone_id: ZoneId, is_active: bool) -> DeliveryZone:
        return self.update_zone(zone_id, {"is_active": is_active})

    def delete_zone(self, zone_id: ZoneId) -> None:
        try:
            self.client.table("delivery_zones").delete().eq("id", zone_id).execute()
        except Exception as e:
            logger.error(f"Error deleting zone {zone_id}: {e}")
            raise RepositoryError("Failed to delete delivery zone")

        logger.info(f"Deleted delivery zone {zone_id}")

    # ------------------------------------------------------------------
    # Time slots
    # ------------------------------------------------------------------

    def generate_time_slots(
        self,
        start_date: str,
        end_date: str,
        templates: List[TimeSlotTemplate],
    ) -> int:
        """Create one slot per template for each date in the range; returns the count"""
        rows = expand_slot_templates(start_date, end_date, templates)
        if not rows:
            return 0

        try:
            response = self.client.table("time_slots").insert(rows).execute()
        except Exception as e:
            logger.error(f"Error creating time slots: {e}")
            raise RepositoryError("Failed to generate time slots")

        created = len(self._rows(response))
        logger.info(f"Generated {created} time slots for {start_date}..{end_date}")
        return created

    def get_time_slots_for_date(self, date: str) -> List[TimeSlot]:
        """All slots on a date, including full and closed ones"""
        try:
            response = (
                self.client.table("time_slots")
                .select("*")
                .eq("date", date)
                .order("window_start")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching time slots for {date}: {e}")
            raise RepositoryError("Failed to fetch time slots")

        return [TimeSlot(**row) for row in self._rows(response)]

    def update_time_slot(self, slot_id: str, updates: TimeSlotUpdate) -> TimeSlot:
        payload = updates.model_dump(mode="json", exclude_none=True)
        try:
            response = self.client.table("time_slots").update(payload).eq("id", slot_id).execute()
        except Exception as e:
            logger.error(f"Error updating time slot {slot_id}: {e}")
            raise RepositoryError("Failed to update time slot")

        row = self._first(response)
        if not row:
            raise NotFoundError("Time slot not found")
        return TimeSlot(**row)

    def delete_time_slots_for_range(self, start_date: str, end_date: str) -> int:
        try:
            response = (
                self.client.table("time_slots")
                .delete()
                .gte("date", start_date)
                .lte("date", end_date)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error deleting time slots {start_date}..{end_date}: {e}")
            raise RepositoryError("Failed to delete time slots")

        return len(self._rows(response))
