from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.files.schemas import FileResponse
from app.modules.files.service import FileService, format_file_size
from app.core.dependencies import get_current_actor, get_current_user, is_super_user
from supabase import Client
from typing import List, Dict

router = APIRouter(tags=["files"])


def get_file_service(supabase: Client = Depends(get_supabase)) -> FileService:
    return FileService(supabase)


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read at most max_bytes + 1 bytes so oversized uploads are refused without buffering them whole"""
    too_large = HTTPException(
        status_code=413,
        detail=f"File too large. Maximum size is {format_file_size(max_bytes)}."
    )
    if file.size is not None and file.size > max_bytes:
        raise too_large
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise too_large
    return content


@router.post("/rooms/{room_id}/files", response_model=FileResponse, status_code=201)
async def upload_file(
    room_id: str,
    file: UploadFile = File(...),
    actor: Dict = Depends(get_current_user),
    service: FileService = Depends(get_file_service)
):
    """Share a file with the room (registered participants only)"""
    content = await read_upload(file, settings.max_file_size_bytes)
    return service.upload_file(room_id, actor, file.filename or "file", content, file.content_type)


@router.get("/rooms/{room_id}/files", response_model=List[FileResponse])
async def list_files(
    room_id: str,
    service: FileService = Depends(get_file_service)
):
    return service.list_files(room_id)


@router.delete("/files/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    actor: Dict = Depends(get_current_actor),
    service: FileService = Depends(get_file_service)
):
    service.delete_file(file_id, actor, is_admin=is_super_user(actor))
    return None
