from supabase import Client
from app.modules.activity.schemas import ActivityResponse
from app.database.supabase_client import utcnow_iso
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def attach_profiles(supabase: Client, rows: List[Dict[str, Any]], key_fields=("user_id", "guest_id"), target: str = "profile") -> List[Dict[str, Any]]:
    """Attach profiles rows to each row using one batched query instead of one per row."""
    ids = set()
    for row in rows:
        for key in key_fields:
            if row.get(key):
                ids.add(row[key])
    profiles: Dict[str, Dict[str, Any]] = {}
    if ids:
        try:
            result = supabase.table("profiles")\
                .select("id, username, display_name, avatar_url, is_guest")\
                .in_("id", list(ids))\
                .execute()
            profiles = {p["id"]: p for p in (result.data or [])}
        except Exception as e:
            logger.warning(f"Error fetching profiles for {len(ids)} id(s): {e}")
    for row in rows:
        row[target] = None
        for key in key_fields:
            if row.get(key) and row[key] in profiles:
                row[target] = profiles[row[key]]
                break
    return rows


class ActivityService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def log(self, room_id: Optional[str], actor: Optional[dict], action: str, details: Optional[Any] = None) -> None:
        """Record an activity entry. Never raises: activity is a side channel of the calling operation."""
        try:
            self.supabase.table("activity_logs").insert({
                "room_id": room_id,
                "user_id": actor.get("user_id") if actor else None,
                "guest_id": actor.get("guest_id") if actor else None,
                "action": action,
                "details": details,
                "created_at": utcnow_iso(),
            }).execute()
        except Exception as e:
            logger.warning(f"Could not log activity {action} for room {room_id}: {e}")

    def list_activity(self, room_id: str, limit: int = 50) -> List[ActivityResponse]:
        """Recent activity for a room, newest first"""
        try:
            result = self.supabase.table("activity_logs")\
                .select("*")\
                .eq("room_id", room_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            rows = attach_profiles(self.supabase, result.data or [])
            return [ActivityResponse(**row) for row in rows]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
