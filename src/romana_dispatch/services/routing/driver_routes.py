"""Route view for a single delivery driver."""

from __future__ import annotations

from datetime import date
from typing import Sequence

from ...models.domain import Coordinates, OrderStatus, RoutingOrder
from ...schemas.dispatch import (
    CoordinatesModel,
    DriverRouteModel,
    DriverRoutesResponse,
    DriverRoutesSummary,
    DriverStopModel,
)
from ..geospatial import path_distance_m
from .planner import group_by_region


def _route_status(orders: Sequence[RoutingOrder]) -> str:
    delivered = sum(1 for order in orders if order.status is OrderStatus.DELIVERED)
    shipped = sum(1 for order in orders if order.status is OrderStatus.SHIPPED)
    if orders and delivered == len(orders):
        return "COMPLETED"
    if delivered or shipped:
        return "IN_PROGRESS"
    return "PLANNED"


def _stop_status(order: RoutingOrder) -> str:
    if order.status is OrderStatus.DELIVERED:
        return "DELIVERED"
    if order.status is OrderStatus.SHIPPED:
        return "SHIPPED"
    return "PENDING"


def _coordinates_model(order: RoutingOrder) -> CoordinatesModel | None:
    coords = order.address.coordinates
    if coords is None:
        return None
    return CoordinatesModel(lat=coords.lat, lng=coords.lng)


def is_current(order: RoutingOrder, today: date) -> bool:
    """Shipped orders and anything created today belong on the driver's sheet."""
    if order.status is OrderStatus.SHIPPED:
        return True
    return order.created_at is not None and order.created_at.date() == today


def build_driver_routes(orders: Sequence[RoutingOrder], depot: Coordinates, today: date) -> DriverRoutesResponse:
    current = [order for order in orders if is_current(order, today)]
    routes: list[DriverRouteModel] = []

    for index, (region, region_orders) in enumerate(group_by_region(current).items(), start=1):
        located = [order.address.coordinates for order in region_orders if order.address.coordinates is not None]
        distance_km = path_distance_m([depot, *located]) / 1000.0 if located else 0.0
        routes.append(
            DriverRouteModel(
                id=f"route-{index}",
                name=f"{region} Route",
                region=region,
                total_stops=len(region_orders),
                estimated_distance_km=round(distance_km, 1),
                status=_route_status(region_orders),
                stops=[
                    DriverStopModel(
                        id=order.id,
                        order_number=order.order_number,
                        customer_name=order.customer_name or order.address.name,
                        address=order.address.display,
                        coordinates=_coordinates_model(order),
                        status=_stop_status(order),
                        priority=position,
                    )
                    for position, order in enumerate(region_orders, start=1)
                ],
            )
        )

    return DriverRoutesResponse(
        routes=routes,
        summary=DriverRoutesSummary(
            total_routes=len(routes),
            total_stops=len(current),
            completed_stops=sum(1 for order in current if order.status is OrderStatus.DELIVERED),
        ),
    )
