from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    GuestSessionRequest, GuestSessionResponse, GuestProfileUpdate, MeResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_auth_service, get_current_actor, is_super_user, security
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(actor: Dict = Depends(get_current_actor)):
    """Who the caller is: a registered user (bearer token) or a guest (X-Guest-Id)"""
    return MeResponse(
        id=actor["id"],
        user_id=actor["user_id"],
        guest_id=actor["guest_id"],
        is_guest=actor["is_guest"],
        email=actor["email"],
        is_super_user=is_super_user(actor),
        profile=actor["profile"],
    )


@router.post("/guest", response_model=GuestSessionResponse, status_code=201)
async def create_guest_session(
    body: Optional[GuestSessionRequest] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Start a guest session. Clients store guest_id and send it back as X-Guest-Id."""
    profile = service.create_guest_session(body.username if body else None)
    return GuestSessionResponse(guest_id=profile["id"], profile=profile)


@router.get("/guest/{guest_id}", response_model=GuestSessionResponse)
async def get_guest_session(
    guest_id: str,
    service: AuthService = Depends(get_auth_service)
):
    """Validate a stored guest id; 401 means the client should start over"""
    profile = service.resolve_guest(guest_id)
    return GuestSessionResponse(guest_id=profile["id"], profile=profile)


@router.patch("/guest/me", response_model=GuestSessionResponse)
async def update_guest_session(
    updates: GuestProfileUpdate,
    actor: Dict = Depends(get_current_actor),
    service: AuthService = Depends(get_auth_service)
):
    if not actor["is_guest"]:
        raise HTTPException(status_code=400, detail="Only guest sessions can be updated here")
    profile = service.update_guest_profile(actor["guest_id"], updates)
    return GuestSessionResponse(guest_id=profile["id"], profile=profile)
