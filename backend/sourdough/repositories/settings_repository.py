"""
Settings Repository - key/JSON rows of business_settings
"""
import logging
from typing import Any, Dict, List, Optional

from sourdough.core.errors import RepositoryError
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)


class SettingsRepository(SupabaseRepository):

    def get_value(self, key: str) -> Optional[Any]:
        """JSON value stored under key, or None when missing or on failure"""
        try:
            response = (
                self.client.table("business_settings")
                .select("value")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching setting {key}: {e}")
            return None

        row = self._first(response)
        return row.get("value") if row else None

    def get_values(self, keys: List[str]) -> Dict[str, Any]:
        """{key: value} for the keys that exist"""
        try:
            response = (
                self.client.table("business_settings")
                .select("key, value")
                .in_("key", keys)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching settings {keys}: {e}")
            return {}

        return {row["key"]: row.get("value") for row in self._rows(response)}

    def set_value(self, key: str, value: Any) -> None:
        try:
            self.client.table("business_settings").upsert(
                {"key": key, "value": value},
                on_conflict="key",
            ).execute()
        except Exception as e:
            logger.error(f"Error saving setting {key}: {e}")
            raise RepositoryError(f"Failed to save setting {key}")
