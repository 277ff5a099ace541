"""
Service providers for FastAPI dependency injection

Routers depend on these so tests can swap services through
app.dependency_overrides.
"""
from sourdough.repositories.customer_repository import CustomerRepository
from sourdough.repositories.delivery_repository import DeliveryRepository
from sourdough.repositories.order_repository import OrderRepository
from sourdough.repositories.pickup_repository import PickupLocationRepository
from sourdough.repositories.product_admin_repository import ProductAdminRepository
from sourdough.repositories.product_repository import ProductRepository
from sourdough.repositories.settings_repository import SettingsRepository
from sourdough.repositories.zone_repository import ZoneRepository
from sourdough.services.business_settings_service import BusinessSettingsService, business_settings
from sourdough.services.checkout_service import CheckoutService
from sourdough.services.discount_service import DiscountService
from sourdough.services.loyalty_service import LoyaltyService
from sourdough.services.order_workflow_service import OrderWorkflowService
from sourdough.services.stripe_service import StripeService, StripeWebhookService
from sourdough.services.tax_service import TaxService


def get_product_repository() -> ProductRepository:
    return ProductRepository()


def get_order_repository() -> OrderRepository:
    return OrderRepository()


def get_delivery_repository() -> DeliveryRepository:
    return DeliveryRepository()


def get_zone_repository() -> ZoneRepository:
    return ZoneRepository()


def get_settings_repository() -> SettingsRepository:
    return SettingsRepository()


def get_business_settings() -> BusinessSettingsService:
    return business_settings


def get_tax_service() -> TaxService:
    return TaxService()


def get_discount_service() -> DiscountService:
    return DiscountService()


def get_loyalty_service() -> LoyaltyService:
    return LoyaltyService()


def get_order_workflow_service() -> OrderWorkflowService:
    return OrderWorkflowService()


def get_checkout_service() -> CheckoutService:
    return CheckoutService()


def get_stripe_service() -> StripeService:
    return StripeService()


def get_webhook_service() -> StripeWebhookService:
    return StripeWebhookService()


def get_customer_repository() -> CustomerRepository:
    return CustomerRepository()


def get_pickup_location_repository() -> PickupLocationRepository:
    return PickupLocationRepository()


def get_product_admin_repository() -> ProductAdminRepository:
    return ProductAdminRepository()
