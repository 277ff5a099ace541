"""
Shared plumbing for Supabase-backed repositories
"""
from typing import Any, Dict, List, Optional

from supabase import Client

from sourdough.core.database import get_supabase


class SupabaseRepository:
    """
    Base class holding the Supabase client

    The client is resolved lazily so repositories can be constructed at
    import time; tests pass their own client.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def _first(self, response) -> Optional[Dict[str, Any]]:
        """First row of a response, or None"""
        rows = response.data or []
        return rows[0] if rows else None

    def _rows(self, response) -> List[Dict[str, Any]]:
        return response.data or []
