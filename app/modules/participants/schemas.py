from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import datetime


class ParticipantResponse(BaseModel):
    id: str
    room_id: str
    profile_id: str
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    is_moderator: bool = False
    is_speaker: bool = False
    is_muted: bool = True
    has_raised_hand: bool = False
    is_active: bool = True
    status: Optional[str] = None
    joined_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    profile: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class MuteRequest(BaseModel):
    muted: bool


class PeersResponse(BaseModel):
    room_id: str
    peers: List[str]
