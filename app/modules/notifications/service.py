from supabase import Client
from app.modules.notifications.schemas import NotificationResponse
from app.database.supabase_client import utcnow_iso
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def send_notification(
        self,
        profile_id: str,
        title: str,
        body: str,
        type: str = "general",
        data: Optional[Dict[str, Any]] = None
    ) -> Optional[NotificationResponse]:
        """Send a notification to a user or guest. Returns None if delivery failed."""
        try:
            result = self.supabase.table("notifications").insert({
                "profile_id": profile_id,
                "title": title,
                "body": body,
                "type": type,
                "data": data,
                "read": False,
                "created_at": utcnow_iso(),
            }).execute()
            if not result.data:
                return None
            return NotificationResponse(**result.data[0])
        except Exception as e:
            logger.warning(f"Could not send {type} notification to {profile_id}: {e}")
            return None

    def list_notifications(self, profile_id: str, unread_only: bool = False, limit: int = 50) -> List[NotificationResponse]:
        try:
            query = self.supabase.table("notifications")\
                .select("*")\
                .eq("profile_id", profile_id)
            if unread_only:
                query = query.eq("read", False)
            result = query.order("created_at", desc=True).limit(limit).execute()
            return [NotificationResponse(**n) for n in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_read(self, notification_id: str, profile_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("id", notification_id)\
                .eq("profile_id", profile_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")
            return NotificationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_all_read(self, profile_id: str) -> int:
        """Mark all unread notifications as read. Returns how many changed."""
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("profile_id", profile_id)\
                .eq("read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
