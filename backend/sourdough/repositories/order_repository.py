"""
Order Repository - Data Access Layer for Orders

Supabase queries for orders, items and status history, plus the raw SQL
production report. Lookups return None / empty lists when Supabase
fails; writes raise RepositoryError.

Author: TM3
Date: 2025-10-17
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Dict, Any

from sourdough.core.database import get_db_connection_dict
from sourdough.core.errors import RepositoryError
from sourdough.domain.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    OrderWithDetails,
    OrderFilters,
    ProductionList,
    build_production_list,
)
from sourdough.repositories.base import SupabaseRepository

logger = logging.getLogger(__name__)

ORDER_ITEMS_SELECT = "*, products(name), product_variants(name)"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _flatten_item(row: Dict[str, Any]) -> OrderItem:
    """Order item row with joined product/variant names"""
    item = dict(row)
    product = item.pop("products", None) or {}
    variant = item.pop("product_variants", None) or {}
    item["product_name"] = product.get("name") or item.get("product_name") or "Unknown Product"
    item["variant_name"] = variant.get("name") or item.get("variant_name")
    return OrderItem(**item)


class OrderRepository(SupabaseRepository):
    """
    Repository for Order data access

    All table access for orders is centralized here.
    """

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_id(self, order_id: str) -> Optional[Order]:
        try:
            response = self.client.table("orders").select("*").eq("id", order_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching order {order_id}: {e}")
            return None

        row = self._first(response)
        return Order(**row) if row else None

    def find_by_number(self, order_number: str) -> Optional[Order]:
        try:
            response = (
                self.client.table("orders")
                .select("*")
                .eq("order_number", order_number)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching order {order_number}: {e}")
            return None

        row = self._first(response)
        return Order(**row) if row else None

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        try:
            response = (
                self.client.table("orders")
                .select("*")
                .eq("stripe_payment_intent_id", payment_intent_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching order for payment intent {payment_intent_id}: {e}")
            return None

        row = self._first(response)
        return Order(**row) if row else None

    def find_by_user(self, user_id: str, limit: int = 50) -> List[Order]:
        """Orders placed by a registered customer, newest first"""
        try:
            response = (
                self.client.table("orders")
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching orders for user {user_id}: {e}")
            return []

        return [Order(**row) for row in self._rows(response)]

    def get_items(self, order_id: str) -> List[OrderItem]:
        """Order items with product and variant names"""
        try:
            response = (
                self.client.table("order_items")
                .select(ORDER_ITEMS_SELECT)
                .eq("order_id", order_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching order items for {order_id}: {e}")
            return []

        return [_flatten_item(row) for row in self._rows(response)]

    def get_status_history(self, order_id: str) -> List[OrderStatusHistory]:
        """Status changes ordered oldest first"""
        try:
            response = (
                self.client.table("order_status_history")
                .select("*")
                .eq("order_id", order_id)
                .order("created_at")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching status history for {order_id}: {e}")
            return []

        return [OrderStatusHistory(**row) for row in self._rows(response)]

    def get_slot_window(self, time_slot_id: str) -> Optional[Tuple[str, str]]:
        """(date, "HH:MM - HH:MM") for a time slot"""
        try:
            response = (
                self.client.table("time_slots")
                .select("date, window_start, window_end")
                .eq("id", time_slot_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Error fetching time slot {time_slot_id}: {e}")
            return None

        row = self._first(response)
        if not row:
            return None
        return row["date"], f"{row['window_start']} - {row['window_end']}"

    def get_customer_contact(self, user_id: str) -> Dict[str, Optional[str]]:
        """Name, email and phone of a registered customer"""
        contact: Dict[str, Optional[str]] = {"name": None, "email": None, "phone": None}

        try:
            response = (
                self.client.table("customer_profiles")
                .select("full_name, phone")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
            profile = self._first(response)
            if profile:
                contact["name"] = profile.get("full_name")
                contact["phone"] = profile.get("phone")
        except Exception as e:
            logger.warning(f"Error fetching customer profile {user_id}: {e}")

        try:
            user_response = self.client.auth.admin.get_user_by_id(user_id)
            if user_response and user_response.user:
                contact["email"] = user_response.user.email
        except Exception as e:
            logger.warning(f"Error fetching auth user {user_id}: {e}")

        return contact

    def with_details(self, order: Order) -> OrderWithDetails:
        """Attach items, history, slot window and customer contact"""
        details = OrderWithDetails(
            **order.model_dump(),
            items=self.get_items(order.id),
            status_history=self.get_status_history(order.id),
        )

        if order.time_slot_id:
            window = self.get_slot_window(order.time_slot_id)
            if window:
                details.slot_date, details.slot_window = window

        if order.user_id:
            contact = self.get_customer_contact(order.user_id)
            details.customer_name = contact["name"]
            details.customer_email = contact["email"]
            details.customer_phone = contact["phone"]
        else:
            details.customer_email = order.guest_email
            details.customer_phone = order.guest_phone

        return details

    def find_with_details(self, order_id: str) -> Optional[OrderWithDetails]:
        order = self.find_by_id(order_id)
        return self.with_details(order) if order else None

    # ------------------------------------------------------------------
    # Admin listing
    # ------------------------------------------------------------------

    def find_all(
        self,
        filters: Optional[OrderFilters] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters, newest first

        Returns:
            Tuple of (orders on the page, total count)
        """
        filters = filters or OrderFilters()

        query = self.client.table("orders").select("*", count="exact")

        if filters.status:
            query = query.eq("status", filters.status.value)
        if filters.fulfillment_type:
            query = query.eq("fulfillment_type", filters.fulfillment_type.value)
        if filters.date_from:
            query = query.gte("created_at", filters.date_from)
        if filters.date_to:
            query = query.lte("created_at", filters.date_to)
        if filters.search:
            term = filters.search.replace(",", " ")
            query = query.or_(f"order_number.ilike.%{term}%,guest_email.ilike.%{term}%")

        start = (page - 1) * per_page
        query = query.order("created_at", desc=True).range(start, start + per_page - 1)

        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Error fetching orders: {e}")
            raise RepositoryError("Failed to fetch orders")

        orders = [Order(**row) for row in self._rows(response)]
        return orders, response.count or 0

    def count_by_status(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> Dict[str, int]:
        """Order counts per status plus a 'total' entry"""
        query = self.client.table("orders").select("status")
        if date_from:
            query = query.gte("created_at", date_from)
        if date_to:
            query = query.lte("created_at", date_to)

        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Error fetching order stats: {e}")
            raise RepositoryError("Failed to fetch order stats")

        stats = {status.value: 0 for status in OrderStatus}
        rows = self._rows(response)
        for row in rows:
            if row.get("status") in stats:
                stats[row["status"]] += 1
        stats["total"] = len(rows)
        return stats

    def get_production_list(self, date: str) -> ProductionList:
        """
        Items to bake for a date, aggregated by product and variant

        Cancelled and refunded orders are excluded. Uses a direct
        connection because the aggregation runs in SQL.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    oi.product_id::text AS product_id,
                    oi.product_variant_id::text AS product_variant_id,
                    COALESCE(p.name, oi.product_name, 'Unknown Product') AS product_name,
                    COALESCE(pv.name, oi.variant_name) AS variant_name,
                    COALESCE(p.category, 'Other') AS category,
                    SUM(oi.quantity)::int AS quantity,
                    COUNT(DISTINCT oi.order_id)::int AS orders_count
                FROM order_items oi
                JOIN orders o ON o.id = oi.order_id
                JOIN time_slots ts ON ts.id = o.time_slot_id
                LEFT JOIN products p ON p.id = oi.product_id
                LEFT JOIN product_variants pv ON pv.id = oi.product_variant_id
                WHERE ts.date = %s
                  AND o.status NOT IN ('cancelled', 'refunded')
                GROUP BY oi.product_id, oi.product_variant_id, p.name, oi.product_name,
                         pv.name, oi.variant_name, p.category
                ORDER BY category, product_name
            """, (date,))
            rows = [dict(row) for row in cursor.fetchall()]

            cursor.execute("""
                SELECT COUNT(DISTINCT o.id) AS total_orders
                FROM orders o
                JOIN time_slots ts ON ts.id = o.time_slot_id
                WHERE ts.date = %s
                  AND o.status NOT IN ('cancelled', 'refunded')
            """, (date,))
            total_orders = cursor.fetchone()["total_orders"] or 0

            return build_production_list(date, rows, total_orders)

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, payload: Dict[str, Any]) -> Order:
        try:
            response = self.client.table("orders").insert(payload).execute()
        except Exception as e:
            logger.error(f"Error creating order: {e}")
            raise RepositoryError("Failed to create order")

        row = self._first(response)
        if not row:
            raise RepositoryError("Failed to create order")
        return Order(**row)

    def create_items(self, items: List[Dict[str, Any]]) -> None:
        try:
            self.client.table("order_items").insert(items).execute()
        except Exception as e:
            logger.error(f"Error creating order items: {e}")
            raise RepositoryError("Failed to create order items")

    def update(self, order_id: str, fields: Dict[str, Any]) -> None:
        payload = {**fields, "updated_at": _now_iso()}
        try:
            self.client.table("orders").update(payload).eq("id", order_id).execute()
        except Exception as e:
            logger.error(f"Error updating order {order_id}: {e}")
            raise RepositoryError("Failed to update order")

    def update_status(self, order_id: str, status: OrderStatus, **extra: Any) -> None:
        self.update(order_id, {"status": status.value, **extra})

    def delete(self, order_id: str) -> None:
        """Delete an order and its items (checkout rollback)"""
        try:
            self.client.table("order_items").delete().eq("order_id", order_id).execute()
            self.client.table("orders").delete().eq("id", order_id).execute()
        except Exception as e:
            logger.error(f"Error deleting order {order_id}: {e}")
            raise RepositoryError("Failed to delete order")

    def add_status_history(
        self,
        order_id: str,
        status: OrderStatus,
        notes: Optional[str] = None,
        changed_by: Optional[str] = None,
    ) -> bool:
        """Append a history row; failures are logged, never raised"""
        try:
            self.client.table("order_status_history").insert({
                "order_id": order_id,
                "status": status.value,
                "notes": notes,
                "changed_by": changed_by,
            }).execute()
            return True
        except Exception as e:
            logger.warning(f"Error adding status history for {order_id}: {e}")
            return False

    def restore_inventory(self, order_id: str) -> bool:
        try:
            self.client.rpc("restore_inventory_for_order", {"order_id_param": order_id}).execute()
            return True
        except Exception as e:
            logger.warning(f"Error restoring inventory for {order_id}: {e}")
            return False

    def save_customer_address(self, user_id: str, address: Dict[str, Any]) -> bool:
        """
        Remember a delivery address for a registered customer

        Skipped when the same street/zip is already saved; the first saved
        address becomes the default.
        """
        try:
            response = (
                self.client.table("customer_addresses")
                .select("id, street, zip")
                .eq("user_id", user_id)
                .execute()
            )
            existing = self._rows(response)
            for row in existing:
                if row.get("street") == address.get("street") and row.get("zip") == address.get("zip"):
                    return True

            self.client.table("customer_addresses").insert({
                "user_id": user_id,
                "label": "Recent Order",
                **address,
                "is_default": not existing,
            }).execute()
            return True
        except Exception as e:
            logger.warning(f"Error saving address for user {user_id}: {e}")
            return False
