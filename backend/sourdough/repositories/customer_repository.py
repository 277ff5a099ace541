"""
Customer Repository - profiles and saved addresses of signed-in customers

Every address query is scoped to the owning user_id, so one customer
can never read or change another's addresses.
"""
import logging
from typing import List, Optional

from sourdough.core.errors import NotFoundError, RepositoryError
from sourdough.domain.customer import (
    AddressCreate,
    AddressUpdate,
    CustomerAddress,
    CustomerProfile,
    CustomerProfileUpdate,
)
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)


class CustomerRepository(SupabaseRepository):

    def get_profile(self, user_id: str) -> Optional[CustomerProfile]:
        try:
            response = self.client.table("customer_profiles").select("*").eq("id", user_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            raise RepositoryError("Failed to fetch profile")

        row = self._first(response)
        return CustomerProfile(**row) if row else None

    def update_profile(self, user_id: str, updates: CustomerProfileUpdate) -> CustomerProfile:
        """Upsert so a customer without a profile row gets one on first save"""
        payload = {"id": user_id, **updates.model_dump(exclude_unset=True)}
        try:
            response = self.client.table("customer_profiles").upsert(payload).execute()
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise RepositoryError("Failed to update profile")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to update profile")
        return CustomerProfile(**row)

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def get_addresses(self, user_id: str) -> List[CustomerAddress]:
        """Default address first, then newest"""
        try:
            response = (
                self.client.table("customer_addresses")
                .select("*")
                .eq("user_id", user_id)
                .order("is_default", desc=True)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching addresses for {user_id}: {e}")
            raise RepositoryError("Failed to fetch addresses")

        return [CustomerAddress(**row) for row in self._rows(response)]

    def _clear_default(self, user_id: str) -> None:
        self.client.table("customer_addresses").update({"is_default": False}).eq("user_id", user_id).execute()

    def add_address(self, user_id: str, address: AddressCreate) -> CustomerAddress:
        try:
            if address.is_default:
                self._clear_default(user_id)
            response = (
                self.client.table("customer_addresses")
                .insert({"user_id": user_id, **address.model_dump()})
                .execute()
            )
        except Exception as e:
            logger.error(f"Error adding address for {user_id}: {e}")
            raise RepositoryError("Failed to add address")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to add address")
        return CustomerAddress(**row)

    def update_address(self, address_id: str, user_id: str, updates: AddressUpdate) -> CustomerAddress:
        payload = updates.model_dump(exclude_unset=True)
        try:
            if payload.get("is_default"):
                self._clear_default(user_id)
            response = (
                self.client.table("customer_addresses")
                .update(payload)
                .eq("id", address_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error updating address {address_id}: {e}")
            raise RepositoryError("Failed to update address")

        row = self._first(response)
        if not row:
            raise NotFoundError("Address not found")
        return CustomerAddress(**row)

    def delete_address(self, address_id: str, user_id: str) -> None:
        try:
            response = (
                self.client.table("customer_addresses")
                .delete()
                .eq("id", address_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error deleting address {address_id}: {e}")
            raise RepositoryError("Failed to delete address")

        if not self._rows(response):
            raise NotFoundError("Address not found")
