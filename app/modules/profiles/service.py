from supabase import Client
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from app.database.supabase_client import fetch_one, is_unique_violation, utcnow_iso
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, profile_id: str) -> ProfileResponse:
        """Get profile by ID"""
        profile = fetch_one(
            self.supabase.table("profiles")
            .select("*")
            .eq("id", profile_id)
            .maybe_single()
        )
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**profile)

    def get_by_username(self, username: str) -> ProfileResponse:
        profile = fetch_one(
            self.supabase.table("profiles")
            .select("*")
            .eq("username", username)
            .maybe_single()
        )
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**profile)

    def update_profile(self, profile_id: str, updates: ProfileUpdate) -> ProfileResponse:
        update_data = updates.model_dump(exclude_none=True)
        if not update_data:
            return self.get_profile(profile_id)
        update_data["updated_at"] = utcnow_iso()
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", profile_id)\
                .execute()
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail="Username already taken")
            logger.error(f"Error updating profile {profile_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**result.data[0])

    def list_profiles(self, profile_ids: List[str]) -> List[ProfileResponse]:
        """Batched lookup; unknown ids are skipped"""
        ids = list(dict.fromkeys(i for i in profile_ids if i))
        if not ids:
            return []
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .in_("id", ids)\
                .execute()
            return [ProfileResponse(**p) for p in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
