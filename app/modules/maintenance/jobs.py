"""
Maintenance jobs shared by the background scheduler, the admin endpoint and the CLI scripts.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from supabase import Client
from app.config import settings
from app.database.supabase_client import SupabaseClient
from app.modules.activity.service import ActivityService
from app.modules.analytics.service import AnalyticsService
from app.modules.messages.service import MessageService

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 10


def _batches(items: List[str], size: int = DELETE_BATCH_SIZE):
    for i in range(0, len(items), size):
        yield items[i:i + size]


def find_empty_rooms(supabase: Client, older_than_days: int = 0) -> List[Dict[str, Any]]:
    """Active rooms nobody is in, optionally only those created before the cutoff"""
    rooms = supabase.table("rooms")\
        .select("id, name, created_at")\
        .eq("is_active", True)\
        .execute().data or []
    if older_than_days > 0:
        cutoff = (datetime.now(timezone.utc) - timedelta(days=older_than_days)).isoformat()
        logger.info(f"Only considering rooms created before {cutoff}")
        rooms = [r for r in rooms if r.get("created_at") and r["created_at"] <= cutoff]
    if not rooms:
        return []

    occupied = set()
    for batch in _batches([r["id"] for r in rooms], 100):
        result = supabase.table("room_participants")\
            .select("room_id")\
            .in_("room_id", batch)\
            .eq("is_active", True)\
            .execute()
        occupied.update(p["room_id"] for p in result.data or [])
    return [r for r in rooms if r["id"] not in occupied]


def cleanup_empty_rooms(
    supabase: Client,
    older_than_days: int = 0,
    delete_messages: bool = True,
    dry_run: bool = False
) -> List[str]:
    """Delete rooms with no active participants. Returns the ids of the rooms removed (or that would be)."""
    logger.info("Starting cleanup of empty rooms")
    empty_rooms = find_empty_rooms(supabase, older_than_days)
    if not empty_rooms:
        logger.info("No empty rooms found")
        return []

    room_ids = [r["id"] for r in empty_rooms]
    for room in empty_rooms:
        logger.info(f"Empty room: {room.get('name')} ({room['id']}), created at {room.get('created_at')}")
    if dry_run:
        logger.info(f"Dry run: {len(room_ids)} empty room(s) would be deleted")
        return room_ids

    deleted: List[str] = []
    for i, batch in enumerate(_batches(room_ids), start=1):
        try:
            if delete_messages:
                supabase.table("room_messages").delete().in_("room_id", batch).execute()
            supabase.table("room_participants").delete().in_("room_id", batch).execute()
            supabase.table("room_analytics").delete().in_("room_id", batch).execute()
            supabase.table("rooms").delete().in_("id", batch).execute()
            deleted.extend(batch)
            logger.info(f"Deleted batch {i} ({len(batch)} room(s))")
        except Exception as e:
            logger.error(f"Error deleting empty rooms batch {i}: {e}")

    ActivityService(supabase).log(None, None, "cleanup_empty_rooms", {
        "rooms_deleted": len(deleted),
        "room_ids": deleted,
        "messages_deleted": delete_messages,
    })
    logger.info(f"Cleanup complete: deleted {len(deleted)}/{len(room_ids)} empty room(s)")
    return deleted


def cleanup_old_messages(supabase: Client, days: Optional[int] = None, dry_run: bool = False) -> int:
    days = days if days is not None else settings.message_retention_days
    return MessageService(supabase).delete_messages_older_than(days, dry_run=dry_run)


def update_analytics(supabase: Client, dry_run: bool = False) -> int:
    return AnalyticsService(supabase).update_all(dry_run=dry_run)


def run_maintenance_pass(supabase: Optional[Client] = None) -> Dict[str, Any]:
    """One pass of every job. A failing job is logged and does not stop the others."""
    supabase = supabase or SupabaseClient.get_service_client()
    steps = {
        "update_analytics": lambda: update_analytics(supabase),
        "cleanup_empty_rooms": lambda: cleanup_empty_rooms(
            supabase, older_than_days=settings.empty_room_grace_days
        ),
        "cleanup_old_messages": lambda: cleanup_old_messages(supabase),
    }
    results: Dict[str, Any] = {}
    for name, step in steps.items():
        try:
            results[name] = step()
        except Exception as e:
            logger.error(f"Maintenance step {name} failed: {e}")
            results[name] = None
    return results


async def maintenance_loop():
    """Background task that periodically runs the maintenance pass"""
    logger.info(f"Maintenance scheduler started (every {settings.maintenance_interval_seconds}s)")
    while True:
        try:
            # Supabase calls are blocking; keep them off the event loop
            await asyncio.to_thread(run_maintenance_pass)
        except Exception as e:
            logger.error(f"Error in maintenance loop: {e}")
        await asyncio.sleep(settings.maintenance_interval_seconds)
