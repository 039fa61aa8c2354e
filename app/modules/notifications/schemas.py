from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class NotificationResponse(BaseModel):
    id: str
    profile_id: str
    title: str
    body: str
    type: str
    data: Optional[Dict[str, Any]] = None
    read: bool = False
    created_at: datetime

    class Config:
        from_attributes = True
