"""
Repository Layer - Data Access

This layer handles all Supabase table/RPC access and raw SQL reports
and returns domain models. Repositories keep query details out of
services.

Author: TM3
Date: 2025-10-17
"""
from sourdough.repositories.order_repository import OrderRepository
from sourdough.repositories.product_repository import ProductRepository
from sourdough.repositories.delivery_repository import DeliveryRepository
from sourdough.repositories.zone_repository import ZoneRepository
from sourdough.repositories.discount_repository import DiscountRepository
from sourdough.repositories.loyalty_repository import LoyaltyRepository
from sourdough.repositories.settings_repository import SettingsRepository

__all__ = [
    'OrderRepository',
    'ProductRepository',
    'DeliveryRepository',
    'ZoneRepository',
    'DiscountRepository',
    'LoyaltyRepository',
    'SettingsRepository',
]
