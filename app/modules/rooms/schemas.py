from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


def _clean_topics(topics: List[str]) -> List[str]:
    seen = []
    for topic in topics:
        topic = topic.strip().lower()
        if topic and topic not in seen:
            seen.append(topic)
    return seen


class RoomTheme(BaseModel):
    """Room page look: a color or image URL for the background plus an accent color"""
    background: Optional[str] = Field(default=None, max_length=500)
    color: Optional[str] = Field(default=None, max_length=32)
    preset: Optional[int] = Field(default=None, ge=0)


class RoomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_private: bool = False
    has_camera: bool = False
    topics: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Room name is required")
        return v

    @field_validator("topics")
    @classmethod
    def clean_topics(cls, v: List[str]) -> List[str]:
        return _clean_topics(v)


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_private: Optional[bool] = None
    has_camera: Optional[bool] = None
    topics: Optional[List[str]] = None
    theme: Optional[RoomTheme] = None

    @field_validator("topics")
    @classmethod
    def clean_topics(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_topics(v) if v is not None else v


class RoomResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_private: bool = False
    has_camera: Optional[bool] = False
    topics: Optional[List[str]] = None
    theme: Optional[Dict[str, Any]] = None
    created_by: str
    is_active: bool = True
    last_active_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoomWithParticipantsResponse(RoomResponse):
    participants: List[Dict[str, Any]] = Field(default_factory=list)
    active_participant_count: int = 0
    host_profile: Optional[Dict[str, Any]] = None


class RoomAnalyticsResponse(BaseModel):
    room_id: str
    total_messages: int = 0
    total_participants: int = 0
    active_participants: int = 0
    last_message_at: Optional[datetime] = None
    last_participant_joined_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    is_trending: bool = False
    trending_score: float = 0
    room: Optional[Dict[str, Any]] = None
