from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.messages.schemas import MessageCreate, MessageResponse
from app.modules.messages.service import MessageService
from app.core.dependencies import get_current_actor, is_super_user
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/rooms/{room_id}/messages", tags=["messages"])


def get_message_service(supabase: Client = Depends(get_supabase)) -> MessageService:
    return MessageService(supabase)


@router.get("", response_model=List[MessageResponse])
async def list_messages(
    room_id: str,
    limit: int = 100,
    before: Optional[str] = None,
    service: MessageService = Depends(get_message_service)
):
    """Chat history, oldest first"""
    return service.list_messages(room_id, limit=limit, before=before)


@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    room_id: str,
    message: MessageCreate,
    actor: Dict = Depends(get_current_actor),
    service: MessageService = Depends(get_message_service)
):
    """Send a chat message (active participants only)"""
    return service.send_message(room_id, actor, message.content)


@router.delete("/{message_id}", status_code=204)
async def delete_message(
    room_id: str,
    message_id: str,
    actor: Dict = Depends(get_current_actor),
    service: MessageService = Depends(get_message_service)
):
    service.delete_message(room_id, message_id, actor, is_admin=is_super_user(actor))
    return None
