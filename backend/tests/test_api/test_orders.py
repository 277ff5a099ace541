"""
API tests for customer order, checkout, discount, loyalty and webhook endpoints
"""
from unittest.mock import MagicMock

from sourdough.api.deps import (
    get_checkout_service,
    get_discount_service,
    get_loyalty_service,
    get_order_workflow_service,
    get_stripe_service,
    get_webhook_service,
)
from sourdough.core.errors import ConflictError, NotFoundError, ValidationError
from sourdough.domain.checkout import CheckoutResult
from sourdough.domain.discount import DiscountValidation
from sourdough.domain.loyalty import LoyaltyStatus, RedemptionResult

CHECKOUT_BODY = {
    "items": [{
        "product_id": "prod-1",
        "variant_id": "var-1",
        "product_name": "Country Sourdough",
        "quantity": 1,
        "unit_price": 12.5,
    }],
    "subtotal": 12.5,
    "email": "guest@example.com",
    "full_name": "Guest Baker",
    "phone": "555-0100",
    "fulfillment_type": "pickup",
    "delivery_date": "2025-03-14",
    "delivery_window": "10:00 - 12:00",
}


class TestOrdersApi:
    """Test /api/v1/orders"""

    def test_my_orders_requires_login(self, client):
        response = client.get("/api/v1/orders/me")

        assert response.status_code == 401

    def test_my_orders(self, client, override, login, customer_user):
        login(customer_user)
        service = override(get_order_workflow_service, MagicMock())
        service.get_user_orders.return_value = [{"id": "order-1", "progress": 40}]

        body = client.get("/api/v1/orders/me").json()

        assert body["count"] == 1
        service.get_user_orders.assert_called_once_with("user-1")

    def test_track_guest_order(self, client, override):
        service = override(get_order_workflow_service, MagicMock())
        service.track_order.return_value = {"order": {"order_number": "HS-2025-001"}, "progress": 10}

        body = client.get("/api/v1/orders/track/HS-2025-001?email=guest@example.com").json()

        assert body["data"]["progress"] == 10
        service.track_order.assert_called_once_with("HS-2025-001", email="guest@example.com", user=None)

    def test_track_mismatch_is_404(self, client, override):
        service = override(get_order_workflow_service, MagicMock())
        service.track_order.side_effect = NotFoundError("Order not found")

        response = client.get("/api/v1/orders/track/HS-2025-001?email=wrong@example.com")

        assert response.status_code == 404
        assert response.json() == {"detail": "Order not found"}

    def test_cancel(self, client, override):
        service = override(get_order_workflow_service, MagicMock())
        service.cancel_order.return_value = {"success": True, "message": "Order cancelled successfully"}

        response = client.post("/api/v1/orders/order-1/cancel", json={"email": "guest@example.com"})

        assert response.status_code == 200
        service.cancel_order.assert_called_once_with("order-1", user=None, email="guest@example.com", reason=None)

    def test_cancel_too_late(self, client, override):
        service = override(get_order_workflow_service, MagicMock())
        service.cancel_order.side_effect = ValidationError("Cannot cancel order after baking has started")

        response = client.post("/api/v1/orders/order-1/cancel", json={"email": "guest@example.com"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot cancel order after baking has started"

    def test_cancel_is_rate_limited(self, client, override):
        override(get_order_workflow_service, MagicMock())

        codes = [client.post("/api/v1/orders/order-1/cancel", json={}).status_code for _ in range(6)]

        assert codes[:5] == [200] * 5
        assert codes[5] == 429


class TestCheckoutApi:
    """Test /api/v1/checkout"""

    def test_checkout(self, client, override):
        # Arrange
        service = override(get_checkout_service, MagicMock())
        service.create_checkout.return_value = CheckoutResult(
            session_url="https://checkout.stripe.com/c/cs_1", order_id="order-1", order_number="HS-2025-042"
        )

        # Act
        response = client.post("/api/v1/checkout/", json=CHECKOUT_BODY)

        # Assert
        assert response.status_code == 200
        assert response.json() == {
            "session_url": "https://checkout.stripe.com/c/cs_1",
            "order_id": "order-1",
            "order_number": "HS-2025-042",
        }
        request = service.create_checkout.call_args[0][0]
        assert request.items[0].variant_id == "var-1"
        assert service.create_checkout.call_args.kwargs["user"] is None

    def test_delivery_without_address_is_422(self, client, override):
        override(get_checkout_service, MagicMock())

        response = client.post("/api/v1/checkout/", json={**CHECKOUT_BODY, "fulfillment_type": "delivery"})

        assert response.status_code == 422

    def test_validation_error_includes_details(self, client, override):
        service = override(get_checkout_service, MagicMock())
        service.create_checkout.side_effect = ValidationError(
            "Price verification failed. Please refresh your cart and try again.",
            details="Mismatched items: Country Sourdough",
        )

        response = client.post("/api/v1/checkout/", json=CHECKOUT_BODY)

        assert response.status_code == 400
        assert response.json() == {
            "detail": "Price verification failed. Please refresh your cart and try again.",
            "details": "Mismatched items: Country Sourdough",
        }

    def test_slot_conflict_is_409(self, client, override):
        service = override(get_checkout_service, MagicMock())
        service.create_checkout.side_effect = ConflictError("Failed to reserve time slot. Please try again.")

        assert client.post("/api/v1/checkout/", json=CHECKOUT_BODY).status_code == 409


class TestDiscountApi:
    def test_validate(self, client, override):
        service = override(get_discount_service, MagicMock())
        service.validate_code.return_value = DiscountValidation(
            valid=True, code="BREAD10", discount_code_id="disc-1", discount_amount=2.5
        )

        body = client.post("/api/v1/discounts/validate", json={"code": "bread10", "subtotal": 25}).json()

        assert body["valid"] is True
        assert body["discount_amount"] == 2.5
        service.validate_code.assert_called_once_with("bread10", 25)

    def test_invalid_code_is_still_200(self, client, override):
        service = override(get_discount_service, MagicMock())
        service.validate_code.return_value = DiscountValidation.failure("Invalid discount code")

        response = client.post("/api/v1/discounts/validate", json={"code": "NOPE", "subtotal": 25})

        assert response.status_code == 200
        assert response.json()["error"] == "Invalid discount code"


class TestLoyaltyApi:
    def test_status_defaults_to_zero(self, client, override, login, customer_user):
        login(customer_user)
        service = override(get_loyalty_service, MagicMock())
        service.get_loyalty_status.return_value = None

        body = client.get("/api/v1/loyalty/").json()

        assert body["data"] == LoyaltyStatus().model_dump(mode="json")

    def test_redeem(self, client, override, login, customer_user):
        login(customer_user)
        service = override(get_loyalty_service, MagicMock())
        service.redeem_points.return_value = RedemptionResult(success=True, code="LOYAL-AB12")

        body = client.post("/api/v1/loyalty/redeem", json={"points": 100}).json()

        assert body["data"]["code"] == "LOYAL-AB12"
        service.redeem_points.assert_called_once_with("user-1", 100)

    def test_redeem_failure(self, client, override, login, customer_user):
        login(customer_user)
        service = override(get_loyalty_service, MagicMock())
        service.redeem_points.return_value = RedemptionResult(success=False, error="Insufficient points")

        response = client.post("/api/v1/loyalty/redeem", json={"points": 100})

        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient points"

    def test_redeem_rejects_non_positive_points(self, client, override, login, customer_user):
        login(customer_user)
        override(get_loyalty_service, MagicMock())

        assert client.post("/api/v1/loyalty/redeem", json={"points": 0}).status_code == 422


class TestStripeWebhookApi:
    """Test /api/v1/webhooks/stripe"""

    def test_handled_event(self, client, override):
        stripe_service = override(get_stripe_service, MagicMock())
        stripe_service.construct_event.return_value = {"type": "checkout.session.completed"}
        webhooks = override(get_webhook_service, MagicMock())
        webhooks.handle_event.return_value = True

        response = client.post(
            "/api/v1/webhooks/stripe",
            content=b'{"id": "evt_1"}',
            headers={"stripe-signature": "t=1,v1=abc"},
        )

        assert response.json() == {"received": True, "handled": True}
        stripe_service.construct_event.assert_called_once_with(b'{"id": "evt_1"}', "t=1,v1=abc")

    def test_bad_signature_is_400(self, client, override):
        stripe_service = override(get_stripe_service, MagicMock())
        stripe_service.construct_event.side_effect = ValidationError("Invalid signature")
        override(get_webhook_service, MagicMock())

        response = client.post("/api/v1/webhooks/stripe", content=b"{}", headers={"stripe-signature": "bad"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid signature"

    def test_handler_failure_is_500(self, client, override):
        stripe_service = override(get_stripe_service, MagicMock())
        stripe_service.construct_event.return_value = {"type": "charge.refunded"}
        webhooks = override(get_webhook_service, MagicMock())
        webhooks.handle_event.side_effect = RuntimeError("db down")

        response = client.post("/api/v1/webhooks/stripe", content=b"{}", headers={"stripe-signature": "ok"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Webhook processing failed"
