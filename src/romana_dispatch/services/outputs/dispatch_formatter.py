"""Serializers for dispatch outputs."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Driver, Route, RouteAssignment, RoutingOrder
from ...schemas.dispatch import (
    AssignmentModel,
    AvailableOrderModel,
    CoordinatesModel,
    DeliveryPersonModel,
    RouteInfoModel,
    RouteModel,
    RouteOrderModel,
)


def distance_meters(route: Route) -> int:
    return round(route.total_distance_m)


def duration_minutes(route: Route) -> int:
    return round(route.total_duration_s / 60)


def route_to_model(route: Route) -> RouteModel:
    driver = route.driver
    return RouteModel(
        id=route.id,
        region=route.region,
        driver_id=driver.id if driver else None,
        driver_name=driver.name if driver else None,
        driver_phone=driver.phone if driver else None,
        orders=[
            RouteOrderModel(
                id=stop.order_id,
                order_number=stop.order_number,
                customer_name=stop.customer_name,
                address=stop.address,
                coordinates=CoordinatesModel(lat=stop.coordinates.lat, lng=stop.coordinates.lng),
            )
            for stop in route.stops
        ],
        total_distance=distance_meters(route),
        total_duration=duration_minutes(route),
        estimated_stops=route.stop_count,
        optimized=route.optimized,
    )


def assignment_to_model(assignment: RouteAssignment) -> AssignmentModel:
    route = assignment.route
    return AssignmentModel(
        route_id=route.id,
        driver_id=assignment.driver.id,
        driver_name=assignment.driver.name,
        orders_assigned=assignment.assigned,
        orders_requested=assignment.requested,
        conflict=assignment.conflict,
        route_info=RouteInfoModel(
            region=route.region,
            total_distance=distance_meters(route),
            total_duration=duration_minutes(route),
            estimated_stops=route.stop_count,
        ),
    )


def available_order_to_model(order: RoutingOrder) -> AvailableOrderModel:
    return AvailableOrderModel(
        id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name or order.address.name,
        address=order.address.display,
        total=order.total,
        status=order.status.value,
        created_at=order.created_at,
    )


def drivers_to_models(drivers: Sequence[Driver]) -> list[DeliveryPersonModel]:
    return [
        DeliveryPersonModel(id=driver.id, name=driver.name, email=driver.email, phone=driver.phone)
        for driver in drivers
    ]
