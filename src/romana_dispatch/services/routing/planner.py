"""Region-based delivery route planning."""

from __future__ import annotations

import logging
from typing import Iterator, Protocol, Sequence

from ...config import MAPBOX_MAX_TRIP_STOPS
from ...models.domain import Coordinates, Route, RoutingOrder, Stop
from ..geospatial import has_coordinates
from .mapbox_client import TripOptimization

logger = logging.getLogger(__name__)


class TripOptimizer(Protocol):
    def optimize_trip(
        self, depot: Coordinates, stops: Sequence[tuple[str, Coordinates]]
    ) -> TripOptimization | None: ...


def routable_orders(orders: Sequence[RoutingOrder]) -> list[RoutingOrder]:
    """Keep orders that wait for a driver and carry both coordinates."""
    eligible: list[RoutingOrder] = []
    for order in orders:
        if not order.is_routable:
            logger.warning(
                f"Skipping order {order.order_number}: status {order.status.value} "
                f"driver {order.delivery_person_id!r} is not routable"
            )
            continue
        if not has_coordinates(order.address):
            logger.warning(f"Skipping order {order.order_number}: address has no coordinates")
            continue
        eligible.append(order)
    return eligible


def group_by_region(orders: Sequence[RoutingOrder]) -> dict[str, list[RoutingOrder]]:
    groups: dict[str, list[RoutingOrder]] = {}
    for order in orders:
        groups.setdefault(order.address.region, []).append(order)
    return groups


def chunk(orders: Sequence[RoutingOrder], size: int) -> Iterator[list[RoutingOrder]]:
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for start in range(0, len(orders), size):
        yield list(orders[start : start + size])


def _to_stop(order: RoutingOrder) -> Stop:
    coordinates = order.address.coordinates
    if coordinates is None:
        raise ValueError(f"Order {order.order_number} has no coordinates")
    return Stop(
        order_id=order.id,
        order_number=order.order_number,
        coordinates=coordinates,
        address=order.address.display,
        customer_name=order.customer_name or order.address.name,
    )


def _optimize_chunk(
    route_id: str,
    stops: list[Stop],
    optimizer: TripOptimizer | None,
    depot: Coordinates,
) -> TripOptimization | None:
    if optimizer is None:
        return None
    try:
        optimization = optimizer.optimize_trip(depot, [(stop.order_id, stop.coordinates) for stop in stops])
    except Exception as exc:
        logger.warning(f"Route optimization failed for {route_id}: {exc}. Using input order.")
        return None
    if optimization is None:
        logger.warning(f"Optimizer returned no trip for {route_id}. Using input order.")
        return None
    expected = sorted(stop.order_id for stop in stops)
    if sorted(optimization.visit_order) != expected:
        logger.warning(f"Optimizer visit order for {route_id} does not cover its stops. Using input order.")
        return None
    return optimization


def plan_routes(
    orders: Sequence[RoutingOrder],
    optimizer: TripOptimizer | None,
    depot: Coordinates,
    *,
    max_stops: int = MAPBOX_MAX_TRIP_STOPS,
) -> list[Route]:
    """Partition orders into per-region routes of at most ``max_stops`` stops.

    Each chunk is sent to the optimizer once. When optimization is unavailable the
    route keeps the input order and reports zero distance and duration. Every
    eligible order lands in exactly one route.
    """
    if max_stops > MAPBOX_MAX_TRIP_STOPS:
        raise ValueError(f"max_stops cannot exceed {MAPBOX_MAX_TRIP_STOPS}")

    routes: list[Route] = []
    for region, region_orders in group_by_region(routable_orders(orders)).items():
        for chunk_index, chunk_orders in enumerate(chunk(region_orders, max_stops)):
            route_id = f"route-{region}-{chunk_index + 1}"
            stops = [_to_stop(order) for order in chunk_orders]
            optimization = _optimize_chunk(route_id, stops, optimizer, depot)

            if optimization is None:
                routes.append(Route(id=route_id, region=region, stops=stops))
                continue

            by_id = {stop.order_id: stop for stop in stops}
            routes.append(
                Route(
                    id=route_id,
                    region=region,
                    stops=[by_id[order_id] for order_id in optimization.visit_order],
                    total_distance_m=optimization.total_distance_m,
                    total_duration_s=optimization.total_duration_s,
                    optimized=True,
                )
            )

    logger.info(
        f"Planned {len(routes)} routes "
        f"({sum(1 for route in routes if route.optimized)} optimized) "
        f"for {sum(route.stop_count for route in routes)} orders"
    )
    return routes
