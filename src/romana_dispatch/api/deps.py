"""Shared request dependencies: collaborators and session checks."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from ..db.supabase import get_supabase_client, resolve_access_token
from ..models.domain import SessionUser, UserRole
from ..persistence.orders import OrderStore, SupabaseOrderStore
from ..services.routing.mapbox_client import build_optimizer
from ..services.routing.planner import TripOptimizer


def get_order_store() -> OrderStore:
    client = get_supabase_client()
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not configured",
        )
    return SupabaseOrderStore(client)


def get_trip_optimizer() -> TripOptimizer | None:
    return build_optimizer()


def get_session_user(
    authorization: str | None = Header(default=None),
    store: OrderStore = Depends(get_order_store),
) -> SessionUser:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    client = get_supabase_client()
    user_id = resolve_access_token(client, token.strip()) if client is not None else None
    user = store.get_user(user_id) if user_id else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


def _require_role(role: UserRole):
    def dependency(user: SessionUser = Depends(get_session_user)) -> SessionUser:
        if user.role is not role:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
        return user

    return dependency


require_admin = _require_role(UserRole.ADMIN)
require_delivery = _require_role(UserRole.DELIVERY)
