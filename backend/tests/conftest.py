"""
Pytest fixtures and configuration for Happy Sourdough Backend tests

This file provides shared fixtures that can be used across all test modules.
Nothing here talks to Supabase, Stripe or Resend: repositories get a
FakeSupabase client and services get mocked collaborators.

Author: TM3
Date: 2025-10-17
"""
import os

# Settings are read at import time; give tests deterministic values
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_dummy")
os.environ.setdefault("RESEND_API_KEY", "re_test_dummy")
os.environ.setdefault("APP_URL", "https://shop.test")

import pytest
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from sourdough.core.auth import TokenUser
from sourdough.core.rate_limit import RATE_LIMITS
from sourdough.domain.order import Order, OrderItem, OrderWithDetails


# ============================================================================
# Fake Supabase client
# ============================================================================

class FakeQuery:
    """
    Records a postgrest query chain and returns a canned response

    Any builder method (select, eq, order, range, ...) is recorded in
    `calls` and returns the query itself.
    """

    def __init__(self, name: str, response):
        self.name = name
        self.calls: List[tuple] = []
        self._response = response

    def __getattr__(self, method):
        if method.startswith("_"):
            raise AttributeError(method)

        def record(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self

        return record

    def execute(self):
        if isinstance(self._response, Exception):
            raise self._response
        data, count = self._response
        return SimpleNamespace(data=data, count=count)

    def called(self, method: str) -> List[tuple]:
        """Args of every call to method"""
        return [args for name, args, _ in self.calls if name == method]

    def kwargs_of(self, method: str) -> List[Dict[str, Any]]:
        return [kwargs for name, _, kwargs in self.calls if name == method]


class FakeSupabase:
    """
    Minimal stand-in for supabase.Client

    Usage:
        client = FakeSupabase().respond("orders", data=[{...}])
        repo = OrderRepository(client)
    """

    def __init__(self):
        self._responses: Dict[str, list] = {}
        self.queries: List[FakeQuery] = []
        self.auth = MagicMock()

    def respond(self, name: str, data: Optional[list] = None, count: Optional[int] = None,
                error: Optional[Exception] = None) -> "FakeSupabase":
        """Queue a response for a table (or "rpc:<name>"); the last one repeats"""
        self._responses.setdefault(name, []).append(error if error else (data if data is not None else [], count))
        return self

    def _next(self, name: str):
        queue = self._responses.get(name)
        if not queue:
            return [], None
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def table(self, name: str) -> FakeQuery:
        query = FakeQuery(name, self._next(name))
        self.queries.append(query)
        return query

    def rpc(self, fn: str, params: Optional[dict] = None) -> FakeQuery:
        name = f"rpc:{fn}"
        query = FakeQuery(name, self._next(name))
        query.params = params
        self.queries.append(query)
        return query

    def queries_for(self, name: str) -> List[FakeQuery]:
        return [q for q in self.queries if q.name == name]


@pytest.fixture
def fake_supabase():
    """
    Provides a fresh FakeSupabase client

    Scope: function (new client per test)
    """
    return FakeSupabase()


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def customer_user():
    return TokenUser(id="user-1", email="jane@example.com", name="Jane Baker", role="customer")


@pytest.fixture
def staff_user():
    return TokenUser(id="staff-1", email="staff@happysourdough.com", name="Sam Staff", role="staff")


@pytest.fixture
def admin_user():
    return TokenUser(id="admin-1", email="admin@happysourdough.com", name="Ada Admin", role="admin")


# ============================================================================
# Sample data
# ============================================================================

@pytest.fixture
def order_row():
    """
    Provides a raw guest order row as returned by Supabase
    """
    return {
        "id": "order-1",
        "order_number": "HS-2025-001",
        "user_id": None,
        "guest_email": "guest@example.com",
        "guest_phone": "555-0100",
        "status": "received",
        "fulfillment_type": "delivery",
        "delivery_date": "2025-03-14",
        "delivery_window": "10:00 - 12:00",
        "time_slot_id": "slot-1",
        "delivery_zone_id": 2,
        "delivery_address": {
            "street": "1 Main St",
            "apt": None,
            "city": "San Francisco",
            "state": "CA",
            "zip": "94110",
        },
        "pickup_location": None,
        "subtotal": 50.0,
        "delivery_fee": 5.0,
        "discount_amount": 0,
        "tax_amount": 4.0,
        "total": 59.0,
        "payment_status": "pending",
        "discount_code_id": None,
    }


@pytest.fixture
def sample_order(order_row):
    return Order(**order_row)


@pytest.fixture
def sample_order_details(order_row):
    return OrderWithDetails(
        **order_row,
        items=[
            OrderItem(
                id="item-1",
                order_id="order-1",
                product_id="prod-1",
                product_variant_id="var-1",
                product_name="Country Sourdough",
                variant_name="Large",
                quantity=2,
                unit_price=12.5,
                total_price=25.0,
            ),
        ],
        customer_email="guest@example.com",
        slot_date="2025-03-14",
        slot_window="10:00 - 12:00",
    )


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Every test starts with empty rate limit buckets"""
    for limiter, _ in RATE_LIMITS.values():
        limiter.reset()
    yield
