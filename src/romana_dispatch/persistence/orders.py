"""Supabase-backed order store and driver directory."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol, Sequence

from supabase import Client

from ..models.domain import (
    ROUTABLE_STATUSES,
    DeliveryAddress,
    Driver,
    OrderStatus,
    RoutingOrder,
    SessionUser,
    UserRole,
)
from ..services.geospatial import has_coordinates

logger = logging.getLogger(__name__)

ORDER_COLUMNS = (
    "id, order_number, status, total, created_at, delivery_person_id, "
    "address:addresses(name, street, city, region, latitude, longitude), "
    "customer:users!user_id(name, email, phone)"
)


class OrderStore(Protocol):
    def find_unassigned_with_coordinates(
        self, statuses: Sequence[OrderStatus], region: str | None = None
    ) -> list[RoutingOrder]: ...

    def find_unassigned(self, statuses: Sequence[OrderStatus]) -> list[RoutingOrder]: ...

    def find_assigned(self, driver_id: str, statuses: Sequence[OrderStatus]) -> list[RoutingOrder]: ...

    def count_active(self, driver_id: str, status: OrderStatus = OrderStatus.SHIPPED) -> int: ...

    def assign_orders(
        self,
        order_ids: Sequence[str],
        driver_id: str,
        *,
        shipped_at: datetime,
        delivery_started_at: datetime | None = None,
        require_unassigned: bool = False,
    ) -> int: ...

    def list_by_role(self, role: UserRole) -> list[Driver]: ...

    def get_user(self, user_id: str) -> SessionUser | None: ...


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _row_to_order(row: dict[str, Any]) -> RoutingOrder:
    address = row.get("address") or {}
    customer = row.get("customer") or {}
    return RoutingOrder(
        id=str(row["id"]),
        order_number=str(row["order_number"]),
        status=OrderStatus(row["status"]),
        address=DeliveryAddress(
            street=address.get("street") or "",
            city=address.get("city") or "",
            region=address.get("region") or "",
            latitude=_optional_float(address.get("latitude")),
            longitude=_optional_float(address.get("longitude")),
            name=address.get("name"),
        ),
        customer_name=customer.get("name"),
        customer_phone=customer.get("phone"),
        customer_email=customer.get("email"),
        delivery_person_id=row.get("delivery_person_id"),
        total=float(row.get("total") or 0),
        created_at=_parse_timestamp(row.get("created_at")),
    )


def _status_values(statuses: Sequence[OrderStatus]) -> list[str]:
    return [OrderStatus(status).value for status in statuses]


class SupabaseOrderStore:
    """Order store over the ``orders``, ``addresses`` and ``users`` tables."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def _map_rows(self, rows: list[dict[str, Any]] | None) -> list[RoutingOrder]:
        orders: list[RoutingOrder] = []
        for row in rows or []:
            try:
                orders.append(_row_to_order(row))
            except (KeyError, ValueError, TypeError) as e:
                # Skip invalid rows but continue processing
                logger.warning(f"Skipping invalid order row {row.get('id')}: {e}")
        return orders

    def find_unassigned(self, statuses: Sequence[OrderStatus] = ROUTABLE_STATUSES) -> list[RoutingOrder]:
        response = (
            self.client.table("orders")
            .select(ORDER_COLUMNS)
            .is_("delivery_person_id", "null")
            .in_("status", _status_values(statuses))
            .order("created_at")
            .execute()
        )
        return self._map_rows(response.data)

    def find_unassigned_with_coordinates(
        self, statuses: Sequence[OrderStatus] = ROUTABLE_STATUSES, region: str | None = None
    ) -> list[RoutingOrder]:
        orders = [order for order in self.find_unassigned(statuses) if has_coordinates(order.address)]
        if region is not None:
            orders = [order for order in orders if order.address.region == region]
        return orders

    def find_assigned(self, driver_id: str, statuses: Sequence[OrderStatus]) -> list[RoutingOrder]:
        response = (
            self.client.table("orders")
            .select(ORDER_COLUMNS)
            .eq("delivery_person_id", driver_id)
            .in_("status", _status_values(statuses))
            .order("created_at")
            .execute()
        )
        return self._map_rows(response.data)

    def count_active(self, driver_id: str, status: OrderStatus = OrderStatus.SHIPPED) -> int:
        response = (
            self.client.table("orders")
            .select("id", count="exact")
            .eq("delivery_person_id", driver_id)
            .eq("status", OrderStatus(status).value)
            .execute()
        )
        return int(response.count or 0)

    def assign_orders(
        self,
        order_ids: Sequence[str],
        driver_id: str,
        *,
        shipped_at: datetime,
        delivery_started_at: datetime | None = None,
        require_unassigned: bool = False,
    ) -> int:
        """Move matching routable orders to SHIPPED for ``driver_id`` and return the affected count.

        Only orders still in a routable status are touched. With ``require_unassigned`` the
        update also requires no driver, so a concurrent assignment is never overwritten.
        """
        if not order_ids:
            return 0
        values: dict[str, Any] = {
            "delivery_person_id": driver_id,
            "status": OrderStatus.SHIPPED.value,
            "shipped_at": shipped_at.isoformat(),
        }
        if delivery_started_at is not None:
            values["delivery_started_at"] = delivery_started_at.isoformat()

        query = (
            self.client.table("orders")
            .update(values)
            .in_("id", list(order_ids))
            .in_("status", _status_values(ROUTABLE_STATUSES))
        )
        if require_unassigned:
            query = query.is_("delivery_person_id", "null")
        response = query.execute()
        return len(response.data or [])

    def list_by_role(self, role: UserRole) -> list[Driver]:
        response = (
            self.client.table("users")
            .select("id, name, phone, email")
            .eq("role", UserRole(role).value)
            .order("name")
            .execute()
        )
        return [
            Driver(id=str(row["id"]), name=row.get("name"), phone=row.get("phone"), email=row.get("email"))
            for row in response.data or []
        ]

    def get_user(self, user_id: str) -> SessionUser | None:
        response = self.client.table("users").select("id, role, name").eq("id", user_id).limit(1).execute()
        if not response.data:
            return None
        row = response.data[0]
        try:
            role = UserRole(row["role"])
        except (KeyError, ValueError):
            logger.warning(f"User {user_id} has unknown role {row.get('role')!r}")
            return None
        return SessionUser(id=str(row["id"]), role=role, name=row.get("name"))
