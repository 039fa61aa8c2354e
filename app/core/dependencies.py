"""
Core dependencies for visitor resolution and room capability checks
"""

from fastapi import Depends, Header, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.room_permissions import get_room_role, role_allows
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.participants.service import ParticipantService
from app.modules.rooms.service import RoomService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache so the actor is resolved once per request."""
    if not hasattr(request.state, "actor_cache"):
        request.state.actor_cache = {}
    return request.state.actor_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def build_user_actor(user_data: dict, profile: Optional[dict]) -> dict:
    return {
        "id": user_data["id"],
        "user_id": user_data["id"],
        "guest_id": None,
        "is_guest": False,
        "email": user_data.get("email"),
        "app_metadata": user_data.get("app_metadata", {}),
        "profile": profile,
    }


def build_guest_actor(profile: dict) -> dict:
    return {
        "id": profile["id"],
        "user_id": None,
        "guest_id": profile["id"],
        "is_guest": True,
        "email": None,
        "app_metadata": {},
        "profile": profile,
    }


def get_optional_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    x_guest_id: Optional[str] = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Resolve the visitor: a bearer token wins over a guest id. Returns None for anonymous requests."""
    cache = _get_request_cache(request)
    if "actor" in cache:
        return cache["actor"]

    actor = None
    if credentials and credentials.credentials:
        user_data = auth_service.get_current_user(credentials.credentials)
        profile = auth_service.ensure_profile(user_data["id"], email=user_data.get("email"))
        actor = build_user_actor(user_data, profile)
    elif x_guest_id:
        actor = build_guest_actor(auth_service.resolve_guest(x_guest_id))

    cache["actor"] = actor
    return actor


def get_current_actor(actor: Optional[dict] = Depends(get_optional_actor)) -> dict:
    """Require a signed-in user or a guest session"""
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in or start a guest session"
        )
    return actor


def get_current_user(actor: dict = Depends(get_current_actor)) -> dict:
    """Require a registered (non-guest) user"""
    if actor["is_guest"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This action requires a registered account"
        )
    return actor


def is_super_user(actor: Optional[dict]) -> bool:
    """Check if user is a super user from app_metadata (set server-side, not user-editable)"""
    if not actor:
        return False
    return (actor.get("app_metadata") or {}).get("type") == "super_user"


def require_super_user(actor: dict = Depends(get_current_user)) -> dict:
    if not is_super_user(actor):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super user access required"
        )
    return actor


def check_room_permission(room_id: str, action: str, actor: dict, supabase: Client) -> Optional[dict]:
    """Raise 403 unless the actor's role in the room allows action. Returns the actor's participant row."""
    participant = ParticipantService(supabase).get_participant(room_id, actor)
    if is_super_user(actor):
        return participant
    room = RoomService(supabase).get_room(room_id)
    # The creator keeps moderator rights even after leaving and rejoining as a listener
    if room.created_by == actor["id"] and participant and participant.get("is_active"):
        return participant
    if not role_allows(get_room_role(participant), action):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient room permissions. Required: {action}"
        )
    return participant


def require_room_permission(action: str):
    """Factory function to create a room capability dependency (room_id comes from the path)"""
    def check_permission(
        room_id: str,
        actor: dict = Depends(get_current_actor),
        supabase: Client = Depends(get_supabase)
    ) -> dict:
        check_room_permission(room_id, action, actor, supabase)
        return actor
    return check_permission
