from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.notifications.schemas import NotificationResponse
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_actor
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    actor: Dict = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    """List the caller's notifications, newest first"""
    return service.list_notifications(actor["id"], unread_only=unread_only, limit=limit)


@router.post("/read-all")
async def mark_all_read(
    actor: Dict = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return {"updated": service.mark_all_read(actor["id"])}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    actor: Dict = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(notification_id, actor["id"])
