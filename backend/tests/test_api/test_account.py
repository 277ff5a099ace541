"""
API tests for /api/v1/account and the public pickup locations
"""
from unittest.mock import MagicMock

from sourdough.api.deps import get_customer_repository, get_pickup_location_repository
from sourdough.core.errors import NotFoundError
from sourdough.domain.customer import CustomerAddress, CustomerProfile
from sourdough.domain.delivery import PickupLocation

HOME = CustomerAddress(id="addr-1", user_id="user-1", label="Home", street="1 Main St",
                       city="San Francisco", state="CA", zip="94110", is_default=True)


class TestProfile:
    """Test /api/v1/account/profile"""

    def test_requires_sign_in(self, client):
        assert client.get("/api/v1/account/profile").status_code == 401

    def test_get_profile(self, client, override, login, customer_user):
        # Arrange
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())
        repo.get_profile.return_value = CustomerProfile(id="user-1", first_name="Jane", phone="555-0100")

        # Act
        response = client.get("/api/v1/account/profile")

        # Assert
        body = response.json()
        assert response.status_code == 200
        assert body["email"] == "jane@example.com"
        assert body["data"]["first_name"] == "Jane"
        repo.get_profile.assert_called_once_with("user-1")

    def test_profile_not_created_yet(self, client, override, login, customer_user):
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())
        repo.get_profile.return_value = None

        assert client.get("/api/v1/account/profile").json()["data"] is None

    def test_update_profile(self, client, override, login, customer_user):
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())
        repo.update_profile.return_value = CustomerProfile(id="user-1", last_name="Baker")

        response = client.patch("/api/v1/account/profile", json={"last_name": "Baker"})

        assert response.status_code == 200
        user_id, updates = repo.update_profile.call_args[0]
        assert user_id == "user-1"
        assert updates.model_dump(exclude_unset=True) == {"last_name": "Baker"}

    def test_empty_update_is_400(self, client, override, login, customer_user):
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())

        response = client.patch("/api/v1/account/profile", json={})

        assert response.status_code == 400
        repo.update_profile.assert_not_called()


class TestAddresses:
    """Test /api/v1/account/addresses"""

    def test_list_addresses(self, client, override, login, customer_user):
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())
        repo.get_addresses.return_value = [HOME]

        body = client.get("/api/v1/account/addresses").json()

        assert body["count"] == 1
        assert body["data"][0]["label"] == "Home"

    def test_add_address(self, client, override, login, customer_user):
        # Arrange
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())
        repo.add_address.return_value = HOME

        # Act
        response = client.post("/api/v1/account/addresses", json={
            "label": "Home", "street": "1 Main St", "city": "San Francisco",
            "state": "CA", "zip": "94110", "is_default": True,
        })

        # Assert
        assert response.status_code == 201
        user_id, address = repo.add_address.call_args[0]
        assert user_id == "user-1"
        assert address.is_default is True

    def test_add_address_requires_street(self, client, override, login, customer_user):
        login(customer_user)
        override(get_customer_repository, MagicMock())

        response = client.post("/api/v1/account/addresses", json={"city": "San Francisco", "state": "CA", "zip": "94110"})

        assert response.status_code == 422

    def test_update_address_passes_owner(self, client, override, login, customer_user):
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())
        repo.update_address.return_value = HOME

        client.patch("/api/v1/account/addresses/addr-1", json={"is_default": True})

        address_id, user_id, _ = repo.update_address.call_args[0]
        assert (address_id, user_id) == ("addr-1", "user-1")

    def test_delete_unknown_address_is_404(self, client, override, login, customer_user):
        login(customer_user)
        repo = override(get_customer_repository, MagicMock())
        repo.delete_address.side_effect = NotFoundError("Address not found")

        response = client.delete("/api/v1/account/addresses/addr-9")

        assert response.status_code == 404
        assert response.json()["detail"] == "Address not found"


class TestPickupLocationsApi:
    """Test /api/v1/delivery/pickup-locations"""

    def test_active_locations_are_public(self, client, override):
        repo = override(get_pickup_location_repository, MagicMock())
        repo.get_active.return_value = [
            PickupLocation(id="loc-1", name="Downtown Bakery", address="12 Market St",
                           city="San Francisco", state="CA", zip="94105"),
        ]

        body = client.get("/api/v1/delivery/pickup-locations").json()

        assert body["count"] == 1
        assert body["data"][0]["name"] == "Downtown Bakery"
