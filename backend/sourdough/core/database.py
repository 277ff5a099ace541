"""
Database access for Happy Sourdough (Supabase)

Two ways into the same database:
- Supabase client for tables, row-level security and remote procedures
- psycopg2 direct connections for raw SQL reports and the health check
"""
import logging
import time
from functools import lru_cache

import psycopg2
from psycopg2.extras import RealDictCursor
from supabase import create_client, Client

from .config import settings

logger = logging.getLogger(__name__)

# Seconds before a direct Postgres connection attempt gives up
CONNECTION_TIMEOUT = 10


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Service-role Supabase client, created on first use"""
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")

    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def _connect(**kwargs):
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL not configured")
    return psycopg2.connect(settings.DATABASE_URL, connect_timeout=CONNECTION_TIMEOUT, **kwargs)


def get_db_connection_dict():
    """
    Direct connection whose cursors return rows as dicts

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT order_number, total FROM orders")
        rows = cursor.fetchall()
        cursor.close()
        conn.close()
    """
    return _connect(cursor_factory=RealDictCursor)


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    Direct connection, verified with SELECT 1, retried on OperationalError

    Delay doubles after each failed attempt. The last error is re-raised
    once max_retries attempts have failed.
    """
    for attempt in range(1, max_retries + 1):
        try:
            conn = _connect()
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()
            return conn
        except psycopg2.OperationalError as e:
            logger.warning(f"Database connection attempt {attempt}/{max_retries} failed: {e}")
            if attempt == max_retries:
                raise
            delay = retry_delay * (2 ** (attempt - 1))
            logger.info(f"Retrying in {delay:.2f} seconds...")
            time.sleep(delay)
