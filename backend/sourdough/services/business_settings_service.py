"""
Business Settings Service
Business info and operating hours from business_settings, with defaults

Values are cached in-process for five minutes; a missing row or a
failed read falls back to the defaults and is never raised.

Author: TM3
Date: 2025-11-24
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from sourdough.domain.settings import (
    BUSINESS_INFO_KEYS,
    BusinessInfo,
    OperatingHours,
    format_operating_hours,
)
from sourdough.repositories.settings_repository import SettingsRepository

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5 * 60


class BusinessSettingsService:
    """
    Cached reader for business info and operating hours

    Usage:
        info = business_settings.get_business_info()
        hours = business_settings.get_operating_hours_text()
    """

    def __init__(
        self,
        repository: Optional[SettingsRepository] = None,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.repository = repository or SettingsRepository()
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: Dict[str, Tuple[float, Any]] = {}

    def _cached(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry and self._clock() - entry[0] < self.ttl_seconds:
            return entry[1]
        return None

    def _store(self, key: str, value: Any) -> Any:
        self._cache[key] = (self._clock(), value)
        return value

    def get_business_info(self) -> BusinessInfo:
        cached = self._cached("business_info")
        if cached is not None:
            return cached

        values = self.repository.get_values(BUSINESS_INFO_KEYS)
        if not values:
            logger.warning("Business settings not found, using defaults")
            return self._store("business_info", BusinessInfo())

        info = BusinessInfo(**{key: value for key, value in values.items() if isinstance(value, str)})
        return self._store("business_info", info)

    def get_operating_hours(self) -> OperatingHours:
        cached = self._cached("operating_hours")
        if cached is not None:
            return cached

        value = self.repository.get_value("operating_hours")
        if not value:
            logger.warning("Operating hours not found, using defaults")
            return self._store("operating_hours", OperatingHours())

        try:
            hours = OperatingHours(**value)
        except (PydanticValidationError, TypeError) as e:
            logger.error(f"Invalid operating_hours setting, using defaults: {e}")
            hours = OperatingHours()

        return self._store("operating_hours", hours)

    def get_operating_hours_text(self) -> str:
        return format_operating_hours(self.get_operating_hours())

    def clear_cache(self):
        """Forget cached values (after an admin edit, or in tests)"""
        self._cache.clear()


business_settings = BusinessSettingsService()
