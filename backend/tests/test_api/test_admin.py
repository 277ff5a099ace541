"""
API tests for the back-office endpoints

Author: TM3
Date: 2025-11-14
"""
from unittest.mock import MagicMock

import pytest

from sourdough.api.deps import (
    get_business_settings,
    get_discount_service,
    get_order_repository,
    get_order_workflow_service,
    get_settings_repository,
    get_zone_repository,
)
from sourdough.core.errors import ValidationError
from sourdough.domain.delivery import DeliveryZone
from sourdough.domain.discount import DiscountCode
from sourdough.domain.order import OrderStatus, ProductionList

MISSION = DeliveryZone(id=2, name="Mission", zip_codes=["94110"], min_order_amount=30, delivery_fee=5)


class TestAccessControl:
    """Staff endpoints vs admin endpoints"""

    def test_anonymous_is_401(self, client):
        assert client.get("/api/v1/admin/orders").status_code == 401

    def test_customer_is_403(self, client, override, login, customer_user):
        login(customer_user)
        override(get_order_repository, MagicMock())

        response = client.get("/api/v1/admin/orders")

        assert response.status_code == 403

    @pytest.mark.parametrize("path", ["/api/v1/admin/zones", "/api/v1/admin/discounts"])
    def test_staff_cannot_use_admin_endpoints(self, path, client, override, login, staff_user):
        login(staff_user)
        override(get_zone_repository, MagicMock())
        override(get_discount_service, MagicMock())

        assert client.get(path).status_code == 403


class TestAdminOrders:
    """Test /api/v1/admin/orders"""

    def test_list_orders_paginates(self, client, override, login, staff_user, sample_order):
        # Arrange
        login(staff_user)
        repo = override(get_order_repository, MagicMock())
        repo.find_all.return_value = ([sample_order], 41)

        # Act
        response = client.get("/api/v1/admin/orders?status=received&search=HS-2025&page=2&per_page=20")

        # Assert
        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 41
        assert body["total_pages"] == 3
        assert body["data"][0]["order_number"] == "HS-2025-001"
        filters = repo.find_all.call_args[0][0]
        assert filters.status == OrderStatus.RECEIVED
        assert filters.search == "HS-2025"
        assert repo.find_all.call_args.kwargs == {"page": 2, "per_page": 20}

    def test_stats(self, client, override, login, staff_user):
        login(staff_user)
        repo = override(get_order_repository, MagicMock())
        repo.count_by_status.return_value = {"received": 3, "total": 3}

        body = client.get("/api/v1/admin/orders/stats?date_from=2025-03-01").json()

        assert body["data"]["total"] == 3
        repo.count_by_status.assert_called_once_with("2025-03-01", None)

    def test_order_detail(self, client, override, login, staff_user, sample_order_details):
        login(staff_user)
        repo = override(get_order_repository, MagicMock())
        repo.find_with_details.return_value = sample_order_details

        body = client.get("/api/v1/admin/orders/order-1").json()

        assert body["data"]["total_quantity"] == 2
        assert body["status_info"]["label"] == "Order Received"
        assert body["progress"] == 10
        assert set(body["next_statuses"]) == {"confirmed", "cancelled"}

    def test_order_detail_not_found(self, client, override, login, staff_user):
        login(staff_user)
        repo = override(get_order_repository, MagicMock())
        repo.find_with_details.return_value = None

        response = client.get("/api/v1/admin/orders/missing")

        assert response.status_code == 404

    def test_update_status(self, client, override, login, staff_user, sample_order_details):
        login(staff_user)
        service = override(get_order_workflow_service, MagicMock())
        service.update_order_status.return_value = sample_order_details

        response = client.patch(
            "/api/v1/admin/orders/order-1/status",
            json={"status": "confirmed", "notes": "Paid by phone"},
        )

        assert response.json()["message"] == "Order status updated to confirmed"
        service.update_order_status.assert_called_once_with(
            "order-1", OrderStatus.CONFIRMED, "Paid by phone", changed_by="staff-1"
        )

    def test_invalid_transition_is_400(self, client, override, login, staff_user):
        login(staff_user)
        service = override(get_order_workflow_service, MagicMock())
        service.update_order_status.side_effect = ValidationError(
            "Invalid status transition from received to baking"
        )

        response = client.patch("/api/v1/admin/orders/order-1/status", json={"status": "baking"})

        assert response.status_code == 400

    def test_unknown_status_is_422(self, client, override, login, staff_user):
        login(staff_user)
        override(get_order_workflow_service, MagicMock())

        response = client.patch("/api/v1/admin/orders/order-1/status", json={"status": "burnt"})

        assert response.status_code == 422

    def test_internal_notes(self, client, override, login, staff_user):
        login(staff_user)
        service = override(get_order_workflow_service, MagicMock())

        response = client.patch("/api/v1/admin/orders/order-1/notes", json={"internal_notes": "Nut allergy"})

        assert response.status_code == 200
        service.update_internal_notes.assert_called_once_with("order-1", "Nut allergy")


class TestProduction:
    def test_production_list(self, client, override, login, staff_user):
        login(staff_user)
        repo = override(get_order_repository, MagicMock())
        repo.get_production_list.return_value = ProductionList(date="2025-03-14")

        body = client.get("/api/v1/admin/production?date=2025-03-14").json()

        assert body["data"]["date"] == "2025-03-14"
        repo.get_production_list.assert_called_once_with("2025-03-14")

    def test_production_failure_is_500(self, client, override, login, staff_user):
        login(staff_user)
        repo = override(get_order_repository, MagicMock())
        repo.get_production_list.side_effect = RuntimeError("connection refused")

        response = client.get("/api/v1/admin/production?date=2025-03-14")

        assert response.status_code == 500
        assert "connection refused" in response.json()["detail"]


class TestZonesAndSlots:
    """Test /api/v1/admin/zones and /api/v1/admin/slots"""

    def test_create_zone(self, client, override, login, admin_user):
        login(admin_user)
        repo = override(get_zone_repository, MagicMock())
        repo.create_zone.return_value = MISSION

        response = client.post("/api/v1/admin/zones", json={"name": "Mission", "zip_codes": ["94110"]})

        assert response.status_code == 201
        assert response.json()["data"]["id"] == 2
        assert repo.create_zone.call_args[0][0].zip_codes == ["94110"]

    def test_update_zone_only_sends_given_fields(self, client, override, login, admin_user):
        login(admin_user)
        repo = override(get_zone_repository, MagicMock())
        repo.update_zone.return_value = MISSION

        client.patch("/api/v1/admin/zones/2", json={"delivery_fee": 6})

        repo.update_zone.assert_called_once_with(2, {"delivery_fee": 6})

    def test_update_zone_without_fields(self, client, override, login, admin_user):
        login(admin_user)
        override(get_zone_repository, MagicMock())

        response = client.patch("/api/v1/admin/zones/2", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "No fields to update"

    def test_toggle_zone(self, client, override, login, admin_user):
        login(admin_user)
        repo = override(get_zone_repository, MagicMock())
        repo.toggle_zone_active.return_value = MISSION

        client.post("/api/v1/admin/zones/2/toggle", json={"is_active": False})

        repo.toggle_zone_active.assert_called_once_with(2, False)

    def test_generate_slots(self, client, override, login, admin_user):
        login(admin_user)
        repo = override(get_zone_repository, MagicMock())
        repo.generate_time_slots.return_value = 14

        response = client.post("/api/v1/admin/slots/generate", json={
            "start_date": "2025-03-10",
            "end_date": "2025-03-16",
            "templates": [
                {"window_start": "08:00", "window_end": "10:00"},
                {"window_start": "10:00", "window_end": "12:00", "slot_type": "delivery"},
            ],
        })

        assert response.status_code == 201
        assert response.json()["created"] == 14
        start, end, templates = repo.generate_time_slots.call_args[0]
        assert (start, end, len(templates)) == ("2025-03-10", "2025-03-16", 2)

    def test_generate_slots_inverted_range(self, client, override, login, admin_user):
        login(admin_user)
        override(get_zone_repository, MagicMock())

        response = client.post("/api/v1/admin/slots/generate", json={
            "start_date": "2025-03-16",
            "end_date": "2025-03-10",
            "templates": [{"window_start": "08:00", "window_end": "10:00"}],
        })

        assert response.status_code == 400

    def test_generate_slots_needs_templates(self, client, override, login, admin_user):
        login(admin_user)
        override(get_zone_repository, MagicMock())

        response = client.post("/api/v1/admin/slots/generate", json={
            "start_date": "2025-03-10", "end_date": "2025-03-16", "templates": [],
        })

        assert response.status_code == 422

    def test_staff_can_view_slots(self, client, override, login, staff_user):
        login(staff_user)
        repo = override(get_zone_repository, MagicMock())
        repo.get_time_slots_for_date.return_value = []

        response = client.get("/api/v1/admin/slots?date=2025-03-14")

        assert response.json()["count"] == 0

    def test_delete_slots(self, client, override, login, admin_user):
        login(admin_user)
        repo = override(get_zone_repository, MagicMock())
        repo.delete_time_slots_for_range.return_value = 6

        body = client.delete("/api/v1/admin/slots?start_date=2025-03-10&end_date=2025-03-12").json()

        assert body["deleted"] == 6


class TestAdminDiscounts:
    def test_create_discount(self, client, override, login, admin_user):
        login(admin_user)
        service = override(get_discount_service, MagicMock())
        service.create_code.return_value = DiscountCode(
            id="disc-1", code="SPRING20", discount_type="percentage", discount_value=20
        )

        response = client.post("/api/v1/admin/discounts", json={
            "code": "spring20", "discount_type": "percentage", "discount_value": 20,
        })

        assert response.status_code == 201
        assert response.json()["data"]["code"] == "SPRING20"

    def test_delete_discount(self, client, override, login, admin_user):
        login(admin_user)
        service = override(get_discount_service, MagicMock())

        response = client.delete("/api/v1/admin/discounts/disc-1")

        assert response.status_code == 200
        service.delete_code.assert_called_once_with("disc-1")


class TestAdminSettings:
    """Test PUT /api/v1/admin/settings/{key}"""

    def test_update_tax_settings(self, client, override, login, admin_user):
        # Arrange
        login(admin_user)
        repo = override(get_settings_repository, MagicMock())
        business = override(get_business_settings, MagicMock())

        # Act
        response = client.put("/api/v1/admin/settings/tax_settings", json={"rate": 0.09, "name": "SF Tax"})

        # Assert
        assert response.status_code == 200
        stored = repo.set_value.call_args[0][1]
        assert stored["rate"] == 0.09
        assert stored["type"] == "flat"
        business.clear_cache.assert_called_once()

    def test_invalid_tax_settings(self, client, override, login, admin_user):
        login(admin_user)
        repo = override(get_settings_repository, MagicMock())
        override(get_business_settings, MagicMock())

        response = client.put("/api/v1/admin/settings/tax_settings", json={"rate": -1})

        assert response.status_code == 400
        repo.set_value.assert_not_called()

    def test_business_info_must_be_string(self, client, override, login, admin_user):
        login(admin_user)
        override(get_settings_repository, MagicMock())
        override(get_business_settings, MagicMock())

        ok = client.put("/api/v1/admin/settings/business_phone", json="+1 (555) 000-0000")
        bad = client.put("/api/v1/admin/settings/business_phone", json=5550000)

        assert ok.json()["value"] == "+1 (555) 000-0000"
        assert bad.status_code == 400

    def test_unknown_key(self, client, override, login, admin_user):
        login(admin_user)
        override(get_settings_repository, MagicMock())
        override(get_business_settings, MagicMock())

        response = client.put("/api/v1/admin/settings/favorite_color", json="blue")

        assert response.status_code == 404
