from supabase import Client
from app.config import settings
from app.config.room_permissions import get_room_role, role_allows
from app.modules.messages.schemas import MessageResponse
from app.modules.participants.service import ParticipantService
from app.modules.rooms.service import RoomService
from app.modules.activity.service import attach_profiles
from app.modules.realtime.hub import hub
from app.database.supabase_client import fetch_one, utcnow_iso
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.rooms = RoomService(supabase)
        self.participants = ParticipantService(supabase)

    def list_messages(self, room_id: str, limit: int = 100, before: Optional[str] = None) -> List[MessageResponse]:
        """Chat history in ascending order; `before` pages backwards from a created_at timestamp"""
        try:
            self.rooms.get_room(room_id)
            query = self.supabase.table("room_messages").select("*").eq("room_id", room_id)
            if before:
                query = query.lt("created_at", before)
            # Newest page first, then flipped so the client can append in order
            result = query.order("created_at", desc=True).limit(limit).execute()
            rows = list(reversed(result.data or []))
            rows = attach_profiles(self.supabase, rows)
            return [MessageResponse(**row) for row in rows]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def send_message(self, room_id: str, actor: dict, content: str) -> MessageResponse:
        content = content.strip()
        if not content:
            raise HTTPException(status_code=422, detail="Message cannot be empty")
        if len(content) > settings.max_message_length:
            raise HTTPException(
                status_code=422,
                detail=f"Message is longer than {settings.max_message_length} characters"
            )
        self.rooms.get_active_room(room_id)
        participant = self.participants.get_active_participant(room_id, actor)
        if not role_allows(get_room_role(participant), "message:send"):
            raise HTTPException(status_code=403, detail="You cannot send messages in this room")

        try:
            result = self.supabase.table("room_messages").insert({
                "room_id": room_id,
                "user_id": actor.get("user_id"),
                "guest_id": actor.get("guest_id"),
                "content": content,
                "created_at": utcnow_iso(),
            }).execute()
        except Exception as e:
            logger.error(f"Error sending message to room {room_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to send message")
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to send message")

        row = result.data[0]
        hub.publish(room_id, "room_messages", "INSERT", new=row)
        self.rooms.touch_room(room_id)
        row["profile"] = actor.get("profile")
        return MessageResponse(**row)

    def delete_message(self, room_id: str, message_id: str, actor: dict, is_admin: bool = False) -> bool:
        """Authors delete their own messages; moderators delete any message in their room"""
        message = fetch_one(
            self.supabase.table("room_messages")
            .select("*")
            .eq("id", message_id)
            .eq("room_id", room_id)
            .maybe_single()
        )
        if not message:
            raise HTTPException(status_code=404, detail="Message not found")

        is_author = actor["id"] in (message.get("user_id"), message.get("guest_id"))
        if not is_author and not is_admin:
            participant = self.participants.get_participant(room_id, actor)
            if not role_allows(get_room_role(participant), "message:moderate"):
                raise HTTPException(status_code=403, detail="You can only delete your own messages")

        try:
            result = self.supabase.table("room_messages").delete().eq("id", message_id).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        hub.publish(room_id, "room_messages", "DELETE", old=message)
        return len(result.data) > 0

    def delete_messages_older_than(self, days: int, dry_run: bool = False) -> int:
        """Delete chat messages older than `days` days. Returns how many were (or would be) deleted."""
        cutoff = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        count_result = self.supabase.table("room_messages")\
            .select("id", count="exact", head=True)\
            .lt("created_at", cutoff)\
            .execute()
        count = count_result.count or 0
        if count == 0:
            logger.info(f"No messages older than {cutoff}")
            return 0
        if dry_run:
            logger.info(f"Dry run: {count} message(s) older than {cutoff} would be deleted")
            return count
        self.supabase.table("room_messages").delete().lt("created_at", cutoff).execute()
        logger.info(f"Deleted {count} message(s) older than {cutoff}")
        return count
