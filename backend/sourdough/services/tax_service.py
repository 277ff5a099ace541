"""
Tax Service
Sales tax rate from the `tax_settings` business setting
"""
import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from sourdough.domain.settings import DEFAULT_TAX_RATE, TaxSettings, TaxType
from sourdough.repositories.settings_repository import SettingsRepository

logger = logging.getLogger(__name__)


class TaxService:

    def __init__(self, repository: Optional[SettingsRepository] = None):
        self.repository = repository or SettingsRepository()

    def get_tax_settings(self) -> Optional[TaxSettings]:
        value = self.repository.get_value("tax_settings")
        if not value:
            return None

        try:
            return TaxSettings(**value)
        except (PydanticValidationError, TypeError) as e:
            logger.error(f"Invalid tax_settings value: {e}")
            return None

    def get_tax_rate(self, zone_id: Optional[Union[int, str]] = None) -> float:
        """
        Current tax rate as a fraction (0.08 = 8%)

        by_zone settings use the zone override when one matches; by_distance
        is not implemented and uses the flat rate. Falls back to 8% when
        nothing is configured.
        """
        tax_settings = self.get_tax_settings()
        if tax_settings is None:
            logger.warning(f"Tax settings not found, using default rate: {DEFAULT_TAX_RATE}")
            return DEFAULT_TAX_RATE

        if tax_settings.type == TaxType.BY_ZONE and zone_id is not None:
            for zone in tax_settings.zones:
                if zone.zone_id == str(zone_id):
                    return zone.rate

        return tax_settings.rate or DEFAULT_TAX_RATE

    def calculate_tax(self, subtotal: float, zone_id: Optional[Union[int, str]] = None) -> float:
        return round(subtotal * self.get_tax_rate(zone_id), 2)
