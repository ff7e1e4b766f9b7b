"""Driver portal endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.domain import OrderStatus, SessionUser
from ...persistence.orders import OrderStore
from ...schemas.dispatch import DriverRoutesResponse
from ...services.assignment.service import configured_depot
from ...services.routing.driver_routes import build_driver_routes
from ..deps import get_order_store, require_delivery

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/delivery", tags=["delivery"])


@router.get("/routes", response_model=DriverRoutesResponse, status_code=status.HTTP_200_OK)
def get_my_routes(
    user: SessionUser = Depends(require_delivery),
    store: OrderStore = Depends(get_order_store),
) -> DriverRoutesResponse:
    """The signed-in driver's current orders grouped into per-region routes."""
    try:
        orders = store.find_assigned(user.id, list(OrderStatus))
    except Exception as exc:
        logger.exception(f"Error fetching routes for driver {user.id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch routes data",
        ) from exc
    return build_driver_routes(orders, configured_depot(), today=datetime.now(timezone.utc).date())
