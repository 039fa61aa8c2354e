from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.polls.schemas import PollCreate, PollVote, PollResponse
from app.modules.polls.service import PollService
from app.core.dependencies import get_current_actor, get_optional_actor, require_room_permission, check_room_permission
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(tags=["polls"])


def get_poll_service(supabase: Client = Depends(get_supabase)) -> PollService:
    return PollService(supabase)


@router.post("/rooms/{room_id}/polls", response_model=PollResponse, status_code=201)
async def create_poll(
    room_id: str,
    poll_data: PollCreate,
    actor: Dict = Depends(require_room_permission("poll:create")),
    service: PollService = Depends(get_poll_service)
):
    """Create a poll (moderators only)"""
    return service.create_poll(room_id, actor, poll_data)


@router.get("/rooms/{room_id}/polls", response_model=List[PollResponse])
async def list_polls(
    room_id: str,
    actor: Optional[Dict] = Depends(get_optional_actor),
    service: PollService = Depends(get_poll_service)
):
    """Polls with results; has_voted reflects the caller when identified"""
    return service.list_polls(room_id, viewer_id=actor["id"] if actor else None)


@router.get("/polls/{poll_id}", response_model=PollResponse)
async def get_poll(
    poll_id: str,
    actor: Optional[Dict] = Depends(get_optional_actor),
    service: PollService = Depends(get_poll_service)
):
    return service.get_poll(poll_id, viewer_id=actor["id"] if actor else None)


@router.post("/polls/{poll_id}/votes", response_model=PollResponse, status_code=201)
async def vote(
    poll_id: str,
    body: PollVote,
    actor: Dict = Depends(get_current_actor),
    service: PollService = Depends(get_poll_service)
):
    """Cast a single vote; a second vote is rejected with 409"""
    return service.vote(poll_id, actor, body.option_index)


@router.post("/polls/{poll_id}/close", response_model=PollResponse)
async def close_poll(
    poll_id: str,
    actor: Dict = Depends(get_current_actor),
    service: PollService = Depends(get_poll_service),
    supabase: Client = Depends(get_supabase)
):
    """Close voting (moderators only)"""
    check_room_permission(service.get_room_id(poll_id), "poll:close", actor, supabase)
    return service.close_poll(poll_id, actor)
