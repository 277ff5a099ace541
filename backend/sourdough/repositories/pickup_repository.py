"""
Pickup Location Repository

Checkout reads the active locations; the admin endpoints manage all of
them and get RepositoryError on failure.
"""
import logging
from typing import List

from sourdough.core.errors import NotFoundError, RepositoryError
from sourdough.domain.delivery import PickupLocation, PickupLocationInput, PickupLocationUpdate
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)


class PickupLocationRepository(SupabaseRepository):

    def get_active(self) -> List[PickupLocation]:
        """Active locations in display order; empty on failure"""
        try:
            response = (
                self.client.table("pickup_locations")
                .select("*")
                .eq("is_active", True)
                .order("sort_order")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching pickup locations: {e}")
            return []

        return [PickupLocation(**row) for row in self._rows(response)]

    def list_all(self) -> List[PickupLocation]:
        try:
            response = self.client.table("pickup_locations").select("*").order("sort_order").execute()
        except Exception as e:
            logger.error(f"Error fetching all pickup locations: {e}")
            raise RepositoryError("Failed to fetch pickup locations")

        return [PickupLocation(**row) for row in self._rows(response)]

    def create(self, data: PickupLocationInput) -> PickupLocation:
        try:
            response = self.client.table("pickup_locations").insert(data.model_dump()).execute()
        except Exception as e:
            logger.error(f"Error creating pickup location: {e}")
            raise RepositoryError("Failed to create pickup location")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to create pickup location")
        logger.info(f"Created pickup location {row.get('id')}: {data.name}")
        return PickupLocation(**row)

    def update(self, location_id: str, updates: PickupLocationUpdate) -> PickupLocation:
        payload = updates.model_dump(exclude_unset=True)
        try:
            response = self.client.table("pickup_locations").update(payload).eq("id", location_id).execute()
        except Exception as e:
            logger.error(f"Error updating pickup location {location_id}: {e}")
            raise RepositoryError("Failed to update pickup location")

        row = self._first(response)
        if not row:
            raise NotFoundError("Pickup location not found")
        return PickupLocation(**row)

    def delete(self, location_id: str) -> None:
        try:
            self.client.table("pickup_locations").delete().eq("id", location_id).execute()
        except Exception as e:
            logger.error(f"Error deleting pickup location {location_id}: {e}")
            raise RepositoryError("Failed to delete pickup location")

        logger.info(f"Deleted pickup location {location_id}")
