from supabase import Client
from app.config import settings
from app.config.room_permissions import get_room_role, role_allows
from app.modules.files.schemas import FileResponse
from app.modules.files.storage import get_file_storage
from app.modules.participants.service import ParticipantService
from app.modules.rooms.service import RoomService
from app.modules.activity.service import ActivityService, attach_profiles
from app.modules.realtime.hub import hub
from app.database.supabase_client import fetch_one, utcnow_iso
from typing import List, Optional
from fastapi import HTTPException
import logging
import os
import secrets
import string
import time

logger = logging.getLogger(__name__)

_KEY_ALPHABET = string.ascii_lowercase + string.digits


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 ** 2:
        return f"{size / 1024:.1f} KB"
    if size < 1024 ** 3:
        return f"{size / 1024 ** 2:.1f} MB"
    return f"{size / 1024 ** 3:.1f} GB"


def build_storage_key(room_id: str, filename: str) -> str:
    """{room_id}/{random}_{epoch_ms}.{ext} keeps uploads unique without trusting the client's name"""
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    token = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(12))
    key = f"{room_id}/{token}_{int(time.time() * 1000)}"
    return f"{key}.{ext}" if ext else key


class FileService:
    def __init__(self, supabase: Client, storage=None):
        self.supabase = supabase
        self.storage = storage or get_file_storage(supabase)
        self.rooms = RoomService(supabase)
        self.participants = ParticipantService(supabase)

    def upload_file(
        self,
        room_id: str,
        actor: dict,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None
    ) -> FileResponse:
        if actor.get("is_guest"):
            raise HTTPException(status_code=403, detail="Guests cannot upload files")
        if not content:
            raise HTTPException(status_code=400, detail="File is empty")
        if len(content) > settings.max_file_size_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {format_file_size(settings.max_file_size_bytes)}."
            )
        self.rooms.get_active_room(room_id)
        participant = self.participants.get_active_participant(room_id, actor)
        if not role_allows(get_room_role(participant), "file:upload"):
            raise HTTPException(status_code=403, detail="You cannot upload files in this room")

        key = build_storage_key(room_id, filename)
        content_type = content_type or "application/octet-stream"
        try:
            public_url = self.storage.upload_file(content, key, content_type)
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to upload file: {e}")

        try:
            result = self.supabase.table("files").insert({
                "room_id": room_id,
                "user_id": actor["user_id"],
                "file_path": key,
                "file_name": filename,
                "file_size": len(content),
                "mime_type": content_type,
                "public_url": public_url,
                "created_at": utcnow_iso(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save file metadata")
        except Exception as e:
            # Don't leave orphaned objects behind
            self.storage.delete_file(key)
            if isinstance(e, HTTPException):
                raise
            raise HTTPException(status_code=500, detail=f"Failed to save file metadata: {e}")

        row = result.data[0]
        hub.publish(room_id, "files", "INSERT", new=row)
        ActivityService(self.supabase).log(room_id, actor, "file_uploaded", {"file_name": filename, "file_size": len(content)})
        row["profile"] = actor.get("profile")
        return FileResponse(**row, size_label=format_file_size(row["file_size"]))

    def list_files(self, room_id: str) -> List[FileResponse]:
        try:
            self.rooms.get_room(room_id)
            result = self.supabase.table("files")\
                .select("*")\
                .eq("room_id", room_id)\
                .order("created_at", desc=True)\
                .execute()
            rows = attach_profiles(self.supabase, result.data or [], key_fields=("user_id",))
            return [FileResponse(**row, size_label=format_file_size(row["file_size"])) for row in rows]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_file(self, file_id: str, actor: dict, is_admin: bool = False) -> bool:
        """Uploader or room moderator removes the object, then the row"""
        record = fetch_one(
            self.supabase.table("files")
            .select("*")
            .eq("id", file_id)
            .maybe_single()
        )
        if not record:
            raise HTTPException(status_code=404, detail="File not found")

        if record.get("user_id") != actor.get("user_id") and not is_admin:
            participant = self.participants.get_participant(record["room_id"], actor)
            if not role_allows(get_room_role(participant), "file:moderate"):
                raise HTTPException(status_code=403, detail="You can only delete your own files")

        if not self.storage.delete_file(record["file_path"]):
            logger.warning(f"Stored object {record['file_path']} could not be removed; deleting metadata anyway")
        try:
            result = self.supabase.table("files").delete().eq("id", file_id).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        hub.publish(record["room_id"], "files", "DELETE", old=record)
        return len(result.data) > 0
