from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_actor
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    actor: Dict = Depends(get_current_actor),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(actor["id"])


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    updates: ProfileUpdate,
    actor: Dict = Depends(get_current_actor),
    service: ProfileService = Depends(get_profile_service)
):
    """Update the caller's own profile (users and guests)"""
    return service.update_profile(actor["id"], updates)


@router.get("/by-username/{username}", response_model=ProfileResponse)
async def get_profile_by_username(
    username: str,
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_by_username(username)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(profile_id)
