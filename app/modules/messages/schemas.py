from pydantic import BaseModel, field_validator
from typing import Optional, Dict, Any
from datetime import datetime


class MessageCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v


class MessageResponse(BaseModel):
    id: str
    room_id: str
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    content: str
    created_at: datetime
    profile: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
