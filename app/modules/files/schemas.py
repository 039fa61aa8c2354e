from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class FileResponse(BaseModel):
    id: str
    room_id: str
    user_id: str
    file_path: str
    file_name: str
    file_size: int
    size_label: Optional[str] = None
    mime_type: Optional[str] = None
    public_url: str
    created_at: datetime
    profile: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
