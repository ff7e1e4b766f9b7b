"""Delivery dispatch orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Sequence

from ...config import settings
from ...models.domain import (
    ROUTABLE_STATUSES,
    Coordinates,
    Driver,
    Route,
    RouteAssignment,
    UserRole,
)
from ...persistence.orders import OrderStore
from ..routing.planner import TripOptimizer, plan_routes
from .balancer import NoDriversAvailableError, balance_routes

logger = logging.getLogger(__name__)


class InvalidDeliveryPersonError(ValueError):
    def __init__(self) -> None:
        super().__init__("Invalid delivery person")


@dataclass(slots=True)
class DispatchResult:
    message: str
    total_orders: int = 0
    routes: List[Route] = field(default_factory=list)
    assignments: List[RouteAssignment] = field(default_factory=list)
    failed_routes: List[str] = field(default_factory=list)

    @property
    def drivers_assigned(self) -> int:
        return len({route.driver.id for route in self.routes if route.driver is not None})


def configured_depot() -> Coordinates:
    return Coordinates(lat=settings.depot_latitude, lng=settings.depot_longitude)


def optimize_delivery_routes(
    store: OrderStore,
    optimizer: TripOptimizer | None,
    *,
    commit: bool,
    region: str | None = None,
    depot: Coordinates | None = None,
    now: datetime | None = None,
) -> DispatchResult:
    """Plan routes for every unassigned order and balance them across drivers.

    With ``commit`` the chosen drivers are written back to the order store;
    otherwise the result is a preview.
    """
    orders = store.find_unassigned_with_coordinates(ROUTABLE_STATUSES, region)
    if not orders:
        return DispatchResult(message="No orders available for route optimization")

    drivers = store.list_by_role(UserRole.DELIVERY)
    if not drivers:
        raise NoDriversAvailableError()

    routes = plan_routes(
        orders,
        optimizer,
        depot or configured_depot(),
        max_stops=settings.max_stops_per_route,
    )
    balance = balance_routes(routes, drivers, store, commit=commit, now=now)

    if commit:
        message = "Routes automatically assigned to delivery drivers"
    else:
        message = f"Generated {len(routes)} optimized delivery routes"

    logger.info(
        f"Dispatch {'commit' if commit else 'preview'}: {len(orders)} orders, {len(routes)} routes, "
        f"{len(balance.failed_routes)} failed"
    )
    return DispatchResult(
        message=message,
        total_orders=len(orders),
        routes=routes,
        assignments=balance.assignments,
        failed_routes=balance.failed_routes,
    )


def assign_orders_to_driver(
    store: OrderStore,
    order_ids: Sequence[str],
    delivery_person_id: str,
    *,
    now: datetime | None = None,
) -> tuple[Driver, int]:
    """Ship the given routable orders with one explicitly chosen driver.

    Orders no longer in a routable status are left alone, so the returned count may be
    lower than ``len(order_ids)``.
    """
    user = store.get_user(delivery_person_id)
    if user is None or user.role is not UserRole.DELIVERY:
        raise InvalidDeliveryPersonError()
    driver = Driver(id=user.id, name=user.name)

    timestamp = now or datetime.now(timezone.utc)
    assigned = store.assign_orders(
        order_ids,
        driver.id,
        shipped_at=timestamp,
        delivery_started_at=timestamp,
    )
    logger.info(f"Assigned {assigned}/{len(order_ids)} orders to delivery person {driver.id}")
    return driver, assigned
