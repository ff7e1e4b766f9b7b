"""Greedy load balancing of planned routes across delivery drivers."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Sequence

from ...models.domain import BalanceResult, Driver, Route, RouteAssignment
from ...persistence.orders import OrderStore

logger = logging.getLogger(__name__)


class NoDriversAvailableError(ValueError):
    def __init__(self) -> None:
        super().__init__("No delivery drivers available")


def _current_loads(drivers: Sequence[Driver], store: OrderStore) -> Dict[str, int]:
    return {driver.id: store.count_active(driver.id) for driver in drivers}


def pick_least_loaded(drivers: Sequence[Driver], loads: Dict[str, int]) -> Driver:
    # sorted() is stable, so ties keep the directory order
    return sorted(drivers, key=lambda driver: loads.get(driver.id, 0))[0]


def balance_routes(
    routes: Sequence[Route],
    drivers: Sequence[Driver],
    store: OrderStore,
    *,
    commit: bool,
    now: datetime | None = None,
) -> BalanceResult:
    """Give each route, in order, to the driver with the fewest active orders.

    Loads are read from the store again for every route. With ``commit`` the route's
    orders are moved to SHIPPED before the next route is considered, so the store
    already reflects the new load. Without ``commit`` nothing is written and the
    stops handed out earlier in this call are added to the counts instead.

    A persistence failure only affects its own route: it is logged, listed in
    ``failed_routes`` and left out of ``assignments``.
    """
    if not drivers:
        raise NoDriversAvailableError()

    shipped_at = now or datetime.now(timezone.utc)
    result = BalanceResult()
    pending: Dict[str, int] = defaultdict(int)

    for route in routes:
        loads = _current_loads(drivers, store)
        for driver_id, extra in pending.items():
            loads[driver_id] = loads.get(driver_id, 0) + extra
        driver = pick_least_loaded(drivers, loads)
        logger.debug(f"Route {route.id} -> driver {driver.id} (load {loads.get(driver.id, 0)})")

        if not commit:
            route.driver = driver
            pending[driver.id] += route.stop_count
            result.assignments.append(
                RouteAssignment(route=route, driver=driver, requested=route.stop_count, assigned=route.stop_count)
            )
            continue

        try:
            assigned = store.assign_orders(
                route.order_ids,
                driver.id,
                shipped_at=shipped_at,
                require_unassigned=True,
            )
        except Exception:
            logger.exception(f"Failed to assign route {route.id} to driver {driver.id}")
            result.failed_routes.append(route.id)
            continue

        route.driver = driver
        assignment = RouteAssignment(route=route, driver=driver, requested=route.stop_count, assigned=assigned)
        if assignment.conflict:
            logger.warning(
                f"Route {route.id}: only {assigned}/{route.stop_count} orders assigned to {driver.id}; "
                f"the rest were assigned or changed concurrently"
            )
        result.assignments.append(assignment)

    return result
