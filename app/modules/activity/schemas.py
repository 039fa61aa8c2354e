from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class ActivityResponse(BaseModel):
    id: str
    room_id: Optional[str] = None
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    action: str
    details: Optional[Any] = None
    created_at: datetime
    profile: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
