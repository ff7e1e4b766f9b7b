"""Database clients and utilities."""

from .supabase import get_supabase_client, resolve_access_token

__all__ = ["get_supabase_client", "resolve_access_token"]
