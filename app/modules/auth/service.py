import hashlib
import logging
import random
import time
import uuid
from urllib.parse import urlencode

from supabase import Client
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, GuestProfileUpdate
)
from app.config.settings import settings
from app.database.supabase_client import fetch_one, is_unique_violation, utcnow_iso
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

_GUEST_ADJECTIVES = ["Happy", "Curious", "Gentle", "Brave", "Clever", "Mighty", "Swift", "Calm", "Wise", "Bold"]
_GUEST_NOUNS = ["Explorer", "Voyager", "Pioneer", "Wanderer", "Adventurer", "Discoverer", "Seeker", "Traveler", "Navigator", "Pathfinder"]
_AVATAR_COLORS = ["FF5733", "33FF57", "3357FF", "FF33F5", "F5FF33", "33FFF5"]
_GUEST_USERNAME_ATTEMPTS = 3


def generate_guest_name() -> str:
    return f"{random.choice(_GUEST_ADJECTIVES)}{random.choice(_GUEST_NOUNS)}"


def generate_avatar_url(name: str) -> str:
    params = {
        "name": (name[:1] or "?").upper(),
        "background": random.choice(_AVATAR_COLORS),
        "color": "fff",
        "size": 128,
    }
    return f"{settings.guest_avatar_base_url}?{urlencode(params)}"


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth and create their profile row"""
        try:
            user_metadata = {}
            if register_data.username:
                user_metadata["username"] = register_data.username
            if register_data.display_name:
                user_metadata["display_name"] = register_data.display_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            self.ensure_profile(
                auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                username=register_data.username,
                display_name=register_data.display_name,
            )

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            # Profiles can be missing for accounts created before the profile hook existed
            self.ensure_profile(auth_response.user.id, email=auth_response.user.email or login_data.email)

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign_out failed: {e}")
            return False

    def ensure_profile(
        self,
        user_id: str,
        email: Optional[str] = None,
        username: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return the profile row for an authenticated user, creating it on first sight."""
        existing = fetch_one(
            self.supabase.table("profiles").select("*").eq("id", user_id).maybe_single()
        )
        if existing:
            return existing

        insert_data = {
            "id": user_id,
            "email": email,
            "username": username,
            "display_name": display_name or username or (email.split("@")[0] if email else None),
            "is_guest": False,
            "created_at": utcnow_iso(),
        }
        try:
            result = self.supabase.table("profiles").insert(insert_data).execute()
            if result.data:
                logger.info(f"Created profile for user {user_id}")
                return result.data[0]
        except Exception as e:
            if not is_unique_violation(e):
                logger.error(f"Error creating profile for user {user_id}: {e}")
                raise HTTPException(status_code=500, detail=f"Failed to create profile: {e}")
            if username and "username" in f"{getattr(e, 'message', '')} {getattr(e, 'details', '')}":
                raise HTTPException(status_code=409, detail="Username already taken")

        # Lost a race with a concurrent request; the row exists now
        existing = fetch_one(
            self.supabase.table("profiles").select("*").eq("id", user_id).maybe_single()
        )
        if not existing:
            raise HTTPException(status_code=500, detail="Failed to create profile")
        return existing

    def create_guest_session(self, username: Optional[str] = None) -> Dict[str, Any]:
        """Create a guest profile. The returned id is the guest's only credential."""
        guest_id = str(uuid.uuid4())
        base_name = username or generate_guest_name()
        candidate = base_name

        for attempt in range(_GUEST_USERNAME_ATTEMPTS):
            try:
                result = self.supabase.table("profiles").insert({
                    "id": guest_id,
                    "username": candidate,
                    "display_name": base_name,
                    "avatar_url": generate_avatar_url(base_name),
                    "is_guest": True,
                    "created_at": utcnow_iso(),
                }).execute()
                if not result.data:
                    raise HTTPException(status_code=500, detail="Failed to create guest profile")
                logger.info(f"Created guest session {guest_id} ({candidate})")
                return result.data[0]
            except HTTPException:
                raise
            except Exception as e:
                if not is_unique_violation(e):
                    logger.error(f"Error creating guest profile: {e}")
                    raise HTTPException(status_code=500, detail="Failed to create guest profile")
                logger.debug(f"Guest username {candidate} taken (attempt {attempt + 1})")
                candidate = f"{base_name}{random.randint(1000, 9999)}"

        raise HTTPException(status_code=409, detail="Could not allocate a unique guest username")

    def resolve_guest(self, guest_id: str) -> Dict[str, Any]:
        """Load a guest profile; unknown ids mean the client should discard its stored session."""
        try:
            profile = fetch_one(
                self.supabase.table("profiles")
                .select("*")
                .eq("id", guest_id)
                .eq("is_guest", True)
                .maybe_single()
            )
        except Exception as e:
            logger.warning(f"Error resolving guest {guest_id}: {e}")
            profile = None
        if not profile:
            raise HTTPException(status_code=401, detail="Guest session not found")
        return profile

    def update_guest_profile(self, guest_id: str, updates: GuestProfileUpdate) -> Dict[str, Any]:
        self.resolve_guest(guest_id)
        update_data = updates.model_dump(exclude_none=True)
        if not update_data:
            return self.resolve_guest(guest_id)
        update_data["updated_at"] = utcnow_iso()
        try:
            self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", guest_id)\
                .eq("is_guest", True)\
                .execute()
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail="Username already taken")
            raise HTTPException(status_code=500, detail=f"Failed to update guest profile: {e}")
        return self.resolve_guest(guest_id)
