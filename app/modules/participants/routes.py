from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.participants.schemas import ParticipantResponse, MuteRequest, PeersResponse
from app.modules.participants.service import ParticipantService
from app.modules.rooms.service import RoomService
from app.config.room_permissions import get_capability_matrix, get_room_role, role_allows
from app.core.dependencies import get_current_actor, get_optional_actor, require_room_permission, is_super_user
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/rooms/{room_id}", tags=["participants"])


def get_participant_service(supabase: Client = Depends(get_supabase)) -> ParticipantService:
    return ParticipantService(supabase)


@router.post("/join", response_model=ParticipantResponse)
async def join_room(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    """Join a room as a listener (or rejoin with the previous role)"""
    return service.join_room(room_id, actor)


@router.post("/leave", response_model=ParticipantResponse)
async def leave_room(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.leave_room(room_id, actor)


@router.get("/participants", response_model=List[ParticipantResponse])
async def list_participants(
    room_id: str,
    include_inactive: bool = False,
    service: ParticipantService = Depends(get_participant_service)
):
    """List participants with profiles, moderators and speakers first"""
    return service.list_participants(room_id, active_only=not include_inactive)


@router.get("/participants/me", response_model=ParticipantResponse)
async def get_my_participation(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.get_active_participant(room_id, actor)


@router.post("/participants/me/mute", response_model=ParticipantResponse)
async def set_muted(
    room_id: str,
    body: MuteRequest,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    """Mute or unmute yourself (listeners cannot unmute)"""
    return service.set_muted(room_id, actor, body.muted)


@router.post("/participants/me/hand", response_model=ParticipantResponse)
async def raise_hand(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.raise_hand(room_id, actor)


@router.delete("/participants/me/hand", response_model=ParticipantResponse)
async def lower_hand(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.lower_hand(room_id, actor)


@router.post("/participants/{profile_id}/promote", response_model=ParticipantResponse)
async def promote_to_speaker(
    room_id: str,
    profile_id: str,
    actor: Dict = Depends(require_room_permission("participant:promote")),
    service: ParticipantService = Depends(get_participant_service)
):
    """Bring a participant on stage (moderators only)"""
    return service.promote_to_speaker(room_id, profile_id, actor)


@router.post("/participants/{profile_id}/demote", response_model=ParticipantResponse)
async def demote_to_listener(
    room_id: str,
    profile_id: str,
    actor: Dict = Depends(require_room_permission("participant:demote")),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.demote_to_listener(room_id, profile_id, actor)


@router.post("/participants/{profile_id}/mute", response_model=ParticipantResponse)
async def mute_participant(
    room_id: str,
    profile_id: str,
    actor: Dict = Depends(require_room_permission("participant:mute")),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.mute_participant(room_id, profile_id, actor)


@router.delete("/participants/{profile_id}", status_code=204)
async def kick_participant(
    room_id: str,
    profile_id: str,
    actor: Dict = Depends(require_room_permission("participant:kick")),
    service: ParticipantService = Depends(get_participant_service)
):
    """Remove a participant from the room (moderators only)"""
    service.kick_participant(room_id, profile_id, actor)
    return None


@router.get("/peers", response_model=PeersResponse)
async def get_peers(
    room_id: str,
    service: ParticipantService = Depends(get_participant_service)
):
    """Video-call roster: profile ids currently online in the room"""
    return PeersResponse(room_id=room_id, peers=service.get_peers(room_id))


@router.post("/peers", response_model=PeersResponse)
async def join_video(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    return PeersResponse(room_id=room_id, peers=service.set_peer_status(room_id, actor, online=True))


@router.delete("/peers", response_model=PeersResponse)
async def leave_video(
    room_id: str,
    actor: Dict = Depends(get_current_actor),
    service: ParticipantService = Depends(get_participant_service)
):
    return PeersResponse(room_id=room_id, peers=service.set_peer_status(room_id, actor, online=False))


@router.get("/capabilities")
async def get_my_capabilities(
    room_id: str,
    actor: Optional[Dict] = Depends(get_optional_actor),
    supabase: Client = Depends(get_supabase)
):
    """The caller's room role and the actions it allows (for frontend UI)"""
    room = RoomService(supabase).get_room(room_id)
    participant = ParticipantService(supabase).get_participant(room_id, actor) if actor else None
    role = get_room_role(participant)
    matrix = get_capability_matrix()
    if role and room.created_by == actor["id"]:
        role = "moderator"
    if is_super_user(actor):
        actions = sorted(matrix)
    else:
        actions = sorted(action for action in matrix if role_allows(role, action))
    return {"room_id": room_id, "role": role, "actions": actions}
