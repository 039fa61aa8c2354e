from datetime import datetime, timezone
from typing import Any, Dict, Optional

from postgrest.exceptions import APIError
from supabase import create_client, Client
from app.config import settings

UNIQUE_VIOLATION = "23505"
NO_ROWS = "PGRST116"


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use in maintenance jobs."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def fetch_one(query) -> Optional[Dict[str, Any]]:
    """Execute a maybe_single() query. Some postgrest versions return None instead of an empty response."""
    try:
        result = query.execute()
    except APIError as e:
        if e.code == NO_ROWS:
            return None
        raise
    if result is None:
        return None
    return result.data or None


def is_unique_violation(exc: Exception) -> bool:
    return isinstance(exc, APIError) and exc.code == UNIQUE_VIOLATION


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
