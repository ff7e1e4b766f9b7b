from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Sequence

import pytest

from romana_dispatch.models.domain import (
    ROUTABLE_STATUSES,
    Coordinates,
    DeliveryAddress,
    Driver,
    OrderStatus,
    RoutingOrder,
    SessionUser,
    UserRole,
)
from romana_dispatch.services.routing.mapbox_client import TripOptimization

BASE_TIME = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)


def make_order(
    oid: str,
    region: str = "Dar es Salaam Central",
    *,
    lat: float | None = -6.81,
    lng: float | None = 39.28,
    status: OrderStatus = OrderStatus.CONFIRMED,
    driver: str | None = None,
    created_offset: int = 0,
) -> RoutingOrder:
    return RoutingOrder(
        id=oid,
        order_number=f"RMN-{oid}",
        status=status,
        address=DeliveryAddress(
            street=f"{oid} Samora Avenue",
            city="Dar es Salaam",
            region=region,
            latitude=lat,
            longitude=lng,
            name=f"Home {oid}",
        ),
        customer_name=f"Customer {oid}",
        delivery_person_id=driver,
        total=28000.0,
        created_at=BASE_TIME + timedelta(minutes=created_offset),
    )


class FakeOrderStore:
    """In-memory order store mirroring the conditional updates of the Supabase store."""

    def __init__(self) -> None:
        self.orders: dict[str, RoutingOrder] = {}
        self.users: dict[str, SessionUser] = {}
        self.phones: dict[str, str] = {}
        self.failing_orders: set[str] = set()
        self.count_calls: list[str] = []
        self.update_calls: list[dict] = []

    def add_orders(self, *orders: RoutingOrder) -> None:
        for order in orders:
            self.orders[order.id] = order

    def add_user(self, uid: str, role: UserRole = UserRole.DELIVERY, name: str | None = None, phone: str | None = None) -> None:
        self.users[uid] = SessionUser(id=uid, role=role, name=name or uid.title())
        if phone:
            self.phones[uid] = phone

    def _sorted(self, orders) -> list[RoutingOrder]:
        return sorted(orders, key=lambda order: order.created_at or BASE_TIME)

    def find_unassigned(self, statuses: Sequence[OrderStatus] = ROUTABLE_STATUSES) -> list[RoutingOrder]:
        return self._sorted(
            order for order in self.orders.values() if order.delivery_person_id is None and order.status in statuses
        )

    def find_unassigned_with_coordinates(self, statuses=ROUTABLE_STATUSES, region=None) -> list[RoutingOrder]:
        return [
            order
            for order in self.find_unassigned(statuses)
            if order.address.coordinates is not None and (region is None or order.address.region == region)
        ]

    def find_assigned(self, driver_id: str, statuses) -> list[RoutingOrder]:
        return self._sorted(
            order for order in self.orders.values() if order.delivery_person_id == driver_id and order.status in statuses
        )

    def count_active(self, driver_id: str, status: OrderStatus = OrderStatus.SHIPPED) -> int:
        self.count_calls.append(driver_id)
        return sum(
            1 for order in self.orders.values() if order.delivery_person_id == driver_id and order.status is status
        )

    def assign_orders(self, order_ids, driver_id, *, shipped_at, delivery_started_at=None, require_unassigned=False) -> int:
        self.update_calls.append(
            {
                "order_ids": list(order_ids),
                "driver_id": driver_id,
                "shipped_at": shipped_at,
                "delivery_started_at": delivery_started_at,
                "require_unassigned": require_unassigned,
            }
        )
        if self.failing_orders.intersection(order_ids):
            raise RuntimeError("update failed")
        updated = 0
        for oid in order_ids:
            order = self.orders.get(oid)
            if order is None or order.status not in ROUTABLE_STATUSES:
                continue
            if require_unassigned and order.delivery_person_id is not None:
                continue
            order.delivery_person_id = driver_id
            order.status = OrderStatus.SHIPPED
            updated += 1
        return updated

    def list_by_role(self, role: UserRole) -> list[Driver]:
        return [
            Driver(id=user.id, name=user.name, phone=self.phones.get(user.id))
            for user in self.users.values()
            if user.role is role
        ]

    def get_user(self, user_id: str) -> SessionUser | None:
        return self.users.get(user_id)


class FakeOptimizer:
    """Reverses the visiting order, or raises for stop ids listed in ``failing``."""

    def __init__(self, failing: set[str] | None = None, distance: float = 12345.6, duration: float = 1800.0) -> None:
        self.failing = failing or set()
        self.distance = distance
        self.duration = duration
        self.calls: list[list[str]] = []

    def optimize_trip(self, depot: Coordinates, stops):
        ids = [stop_id for stop_id, _ in stops]
        self.calls.append(ids)
        if self.failing.intersection(ids):
            raise ConnectionError("Mapbox unreachable")
        return TripOptimization(
            visit_order=list(reversed(ids)),
            total_distance_m=self.distance,
            total_duration_s=self.duration,
        )


@pytest.fixture
def store() -> FakeOrderStore:
    return FakeOrderStore()


@pytest.fixture
def optimizer() -> FakeOptimizer:
    return FakeOptimizer()


@pytest.fixture
def depot() -> Coordinates:
    return Coordinates(lat=-6.7924, lng=39.2083)


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def optimizer_factory():
    return FakeOptimizer
