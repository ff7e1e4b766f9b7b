"""Supabase client for the dispatch backend."""

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None


def resolve_access_token(client: Client, token: str) -> str | None:
    """Return the user id behind a Supabase Auth access token, or None when it is not valid."""
    try:
        response = client.auth.get_user(token)
    except Exception as e:
        logger.info(f"Rejected access token: {e}")
        return None
    if response is None or response.user is None:
        return None
    return str(response.user.id)
