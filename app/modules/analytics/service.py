from supabase import Client
from app.modules.rooms.schemas import RoomAnalyticsResponse
from app.database.supabase_client import utcnow_iso
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

TRENDING_MIN_SCORE = 10
MESSAGE_WEIGHT = 1
PARTICIPANT_WEIGHT = 2
ACTIVE_PARTICIPANT_WEIGHT = 3


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def compute_trending(
    message_count: int,
    total_participants: int,
    active_participants: int,
    last_active_at: Optional[datetime],
    now: Optional[datetime] = None
) -> Tuple[float, bool]:
    """
    Score = recency_weight * (messages + 2 * participants + 3 * active participants).
    Recency weight is 1.0 within the last hour, 0.5 within the last day, 0.25 otherwise.
    A room trends only when it was active within the last hour and scores above 10.
    """
    if last_active_at is None:
        return 0.0, False
    now = now or datetime.now(timezone.utc)
    age = now - last_active_at

    if age <= timedelta(hours=1):
        weight = 1.0
    elif age <= timedelta(days=1):
        weight = 0.5
    else:
        weight = 0.25

    score = weight * (
        message_count * MESSAGE_WEIGHT
        + total_participants * PARTICIPANT_WEIGHT
        + active_participants * ACTIVE_PARTICIPANT_WEIGHT
    )
    return score, weight == 1.0 and score > TRENDING_MIN_SCORE


class AnalyticsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _count(self, table: str, room_id: str, active_only: bool = False) -> int:
        query = self.supabase.table(table)\
            .select("id", count="exact", head=True)\
            .eq("room_id", room_id)
        if active_only:
            query = query.eq("is_active", True)
        result = query.execute()
        return result.count or 0

    def _latest(self, table: str, column: str, room_id: str) -> Optional[str]:
        result = self.supabase.table(table)\
            .select(column)\
            .eq("room_id", room_id)\
            .order(column, desc=True)\
            .limit(1)\
            .execute()
        if result.data:
            return result.data[0].get(column)
        return None

    def update_room_analytics(
        self, room_id: str, now: Optional[datetime] = None, dry_run: bool = False
    ) -> Dict[str, Any]:
        """Recompute counts and trending score for one room and upsert its analytics row (unless dry_run)"""
        message_count = self._count("room_messages", room_id)
        total_participants = self._count("room_participants", room_id)
        active_participants = self._count("room_participants", room_id, active_only=True)
        last_message_at = self._latest("room_messages", "created_at", room_id)
        last_joined_at = self._latest("room_participants", "joined_at", room_id)

        candidates = [t for t in (parse_timestamp(last_message_at), parse_timestamp(last_joined_at)) if t]
        last_active = max(candidates) if candidates else None
        score, is_trending = compute_trending(
            message_count, total_participants, active_participants, last_active, now
        )

        analytics = {
            "room_id": room_id,
            "total_messages": message_count,
            "total_participants": total_participants,
            "active_participants": active_participants,
            "last_message_at": last_message_at,
            "last_participant_joined_at": last_joined_at,
            "last_active_at": last_active.isoformat() if last_active else None,
            "is_trending": is_trending,
            "trending_score": score,
            "updated_at": utcnow_iso(),
        }
        if not dry_run:
            self.supabase.table("room_analytics").upsert(analytics, on_conflict="room_id").execute()
        return analytics

    def update_all(self, active_only: bool = True, dry_run: bool = False) -> int:
        """Refresh analytics for every (active) room. Returns the number of rooms updated."""
        query = self.supabase.table("rooms").select("id")
        if active_only:
            query = query.eq("is_active", True)
        rooms = query.execute().data or []
        updated = 0
        for room in rooms:
            try:
                self.update_room_analytics(room["id"], dry_run=dry_run)
                updated += 1
            except Exception as e:
                logger.error(f"Error updating analytics for room {room['id']}: {e}")
        prefix = "[DRY RUN] Would update" if dry_run else "Updated"
        logger.info(f"{prefix} analytics for {updated}/{len(rooms)} room(s)")
        return updated

    def list_trending(self, limit: int = 10) -> List[RoomAnalyticsResponse]:
        """Trending rooms by score, skipping rooms that ended or are private"""
        try:
            result = self.supabase.table("room_analytics")\
                .select("*")\
                .eq("is_trending", True)\
                .order("trending_score", desc=True)\
                .limit(limit)\
                .execute()
            rows = result.data or []
            if not rows:
                return []
            rooms_result = self.supabase.table("rooms")\
                .select("*")\
                .in_("id", [r["room_id"] for r in rows])\
                .eq("is_active", True)\
                .eq("is_private", False)\
                .execute()
            rooms = {r["id"]: r for r in (rooms_result.data or [])}
            return [
                RoomAnalyticsResponse(**{**row, "room": rooms[row["room_id"]]})
                for row in rows
                if row["room_id"] in rooms
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
