"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...db.supabase import get_supabase_client
from ...services.routing.mapbox_client import build_optimizer

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/mapbox", status_code=status.HTTP_200_OK)
def health_mapbox() -> dict:
    """Check that the trip optimizer is configured and its token is accepted."""
    client = build_optimizer()
    if client is None:
        return {"service": "mapbox", "configured": False, "healthy": False}
    try:
        return {"service": "mapbox", "configured": True, "healthy": client.check_health()}
    except Exception as e:
        return {"service": "mapbox", "configured": True, "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and order table access."""
    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set ROMANA_SUPABASE_URL and ROMANA_SUPABASE_KEY environment variables.",
        }

    try:
        response = supabase.table("orders").select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "orders_count": response.count or 0,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
