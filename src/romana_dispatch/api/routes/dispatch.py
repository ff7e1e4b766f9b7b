"""Admin dispatch endpoints: route optimization and delivery assignment."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import ValidationError

from ...models.domain import ROUTABLE_STATUSES, SessionUser, UserRole
from ...persistence.orders import OrderStore
from ...schemas.dispatch import (
    AssignDeliveriesRequest,
    AssignDeliveriesResponse,
    AssignmentDataResponse,
    AutoAssignResponse,
    DeliveryPersonnelResponse,
    DispatchSummary,
    OptimizeRoutesResponse,
)
from ...services.assignment.service import (
    DispatchResult,
    assign_orders_to_driver,
    optimize_delivery_routes,
)
from ...services.outputs.dispatch_formatter import (
    assignment_to_model,
    available_order_to_model,
    drivers_to_models,
    route_to_model,
)
from ...services.routing.planner import TripOptimizer
from ..deps import get_order_store, get_trip_optimizer, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _summary(result: DispatchResult) -> DispatchSummary:
    return DispatchSummary(
        total_orders=result.total_orders,
        total_routes=len(result.routes),
        drivers_assigned=result.drivers_assigned,
    )


def _run_dispatch(
    store: OrderStore,
    optimizer: TripOptimizer | None,
    *,
    commit: bool,
    region: str | None,
) -> DispatchResult:
    try:
        return optimize_delivery_routes(store, optimizer, commit=commit, region=region)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing delivery routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to optimize delivery routes",
        ) from exc


@router.post("/optimize-routes", response_model=OptimizeRoutesResponse, status_code=status.HTTP_200_OK)
def preview_routes(
    region: str | None = Query(default=None, description="Only plan orders in this region"),
    _: SessionUser = Depends(require_admin),
    store: OrderStore = Depends(get_order_store),
    optimizer: TripOptimizer | None = Depends(get_trip_optimizer),
) -> OptimizeRoutesResponse:
    """Plan routes for unassigned orders and propose a driver for each, without saving."""
    result = _run_dispatch(store, optimizer, commit=False, region=region)
    return OptimizeRoutesResponse(
        message=result.message,
        routes=[route_to_model(route) for route in result.routes],
        summary=_summary(result),
    )


@router.patch("/optimize-routes", response_model=AutoAssignResponse, status_code=status.HTTP_200_OK)
def auto_assign_routes(
    region: str | None = Query(default=None, description="Only plan orders in this region"),
    _: SessionUser = Depends(require_admin),
    store: OrderStore = Depends(get_order_store),
    optimizer: TripOptimizer | None = Depends(get_trip_optimizer),
) -> AutoAssignResponse:
    """Plan routes and immediately assign them to the least loaded drivers."""
    result = _run_dispatch(store, optimizer, commit=True, region=region)
    if not result.routes:
        return AutoAssignResponse(message="No routes available for assignment", assignments=[])
    return AutoAssignResponse(
        message=result.message,
        assignments=[assignment_to_model(assignment) for assignment in result.assignments],
        failed_routes=result.failed_routes,
        summary=_summary(result),
    )


@router.patch("/assign-deliveries", response_model=AssignDeliveriesResponse, status_code=status.HTTP_200_OK)
def assign_deliveries(
    payload: Any = Body(default=None),
    _: SessionUser = Depends(require_admin),
    store: OrderStore = Depends(get_order_store),
) -> AssignDeliveriesResponse:
    """Assign explicitly chosen orders to one delivery person."""
    try:
        request = AssignDeliveriesRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing orderIds array or deliveryPersonId",
        ) from exc

    try:
        driver, assigned = assign_orders_to_driver(store, request.order_ids, request.delivery_person_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error assigning deliveries: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign deliveries",
        ) from exc

    return AssignDeliveriesResponse(
        message=f"Successfully assigned {assigned} orders to {driver.name or driver.id}",
        assigned_orders=assigned,
    )


@router.get("/assign-deliveries", response_model=AssignmentDataResponse, status_code=status.HTTP_200_OK)
def get_assignment_data(
    _: SessionUser = Depends(require_admin),
    store: OrderStore = Depends(get_order_store),
) -> AssignmentDataResponse:
    """Unassigned orders and delivery personnel for the manual assignment screen."""
    try:
        orders = store.find_unassigned(ROUTABLE_STATUSES)
        drivers = store.list_by_role(UserRole.DELIVERY)
    except Exception as exc:
        logger.exception(f"Error fetching assignment data: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch assignment data",
        ) from exc
    return AssignmentDataResponse(
        available_orders=[available_order_to_model(order) for order in orders],
        delivery_personnel=drivers_to_models(drivers),
    )


@router.get("/delivery-personnel", response_model=DeliveryPersonnelResponse, status_code=status.HTTP_200_OK)
def list_delivery_personnel(
    _: SessionUser = Depends(require_admin),
    store: OrderStore = Depends(get_order_store),
) -> DeliveryPersonnelResponse:
    try:
        drivers = store.list_by_role(UserRole.DELIVERY)
    except Exception as exc:
        logger.exception(f"Error fetching delivery personnel: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch delivery personnel",
        ) from exc
    return DeliveryPersonnelResponse(delivery_persons=drivers_to_models(drivers))
