from fastapi import APIRouter, Depends, HTTPException, status
from app.database.supabase_client import get_supabase
from app.modules.rooms.schemas import (
    RoomCreate, RoomUpdate, RoomResponse, RoomWithParticipantsResponse, RoomAnalyticsResponse
)
from app.modules.rooms.service import RoomService
from app.modules.analytics.service import AnalyticsService
from app.modules.activity.schemas import ActivityResponse
from app.modules.activity.service import ActivityService
from app.core.dependencies import get_current_actor, require_room_permission, is_super_user
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_room_service(supabase: Client = Depends(get_supabase)) -> RoomService:
    return RoomService(supabase)


@router.post("", response_model=RoomResponse, status_code=201)
async def create_room(
    room_data: RoomCreate,
    actor: Dict = Depends(get_current_actor),
    service: RoomService = Depends(get_room_service)
):
    """Create a room; the creator joins as moderator"""
    return service.create_room(room_data, actor)


@router.get("", response_model=List[RoomWithParticipantsResponse])
async def list_rooms(
    topic: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    service: RoomService = Depends(get_room_service)
):
    """Directory of active public rooms"""
    return service.list_active_rooms(limit=limit, offset=offset, topic=topic)


@router.get("/trending", response_model=List[RoomAnalyticsResponse])
async def list_trending_rooms(
    limit: int = 10,
    supabase: Client = Depends(get_supabase)
):
    return AnalyticsService(supabase).list_trending(limit=limit)


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: str,
    service: RoomService = Depends(get_room_service)
):
    return service.get_room(room_id)


@router.put("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: str,
    room_data: RoomUpdate,
    actor: Dict = Depends(require_room_permission("room:update")),
    service: RoomService = Depends(get_room_service)
):
    """Update room settings (moderators only)"""
    return service.update_room(room_id, room_data)


@router.post("/{room_id}/end", response_model=RoomResponse)
async def end_room(
    room_id: str,
    actor: Dict = Depends(require_room_permission("room:end")),
    service: RoomService = Depends(get_room_service)
):
    """End the room for everyone (moderators only)"""
    return service.end_room(room_id, actor)


@router.delete("/{room_id}", status_code=204)
async def delete_room(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: RoomService = Depends(get_room_service)
):
    """Delete the room and everything in it (creator or super user)"""
    room = service.get_room(room_id)
    if room.created_by != actor["id"] and not is_super_user(actor):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the room creator can delete it")
    service.delete_room(room_id)
    return None


@router.get("/{room_id}/activity", response_model=List[ActivityResponse])
async def list_room_activity(
    room_id: str,
    limit: int = 50,
    service: RoomService = Depends(get_room_service),
    supabase: Client = Depends(get_supabase)
):
    service.get_room(room_id)
    return ActivityService(supabase).list_activity(room_id, limit=limit)
