from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    username: Optional[str] = Field(default=None, min_length=3, max_length=30)
    display_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class GuestSessionRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=30)


class GuestProfileUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=30)
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None


class GuestSessionResponse(BaseModel):
    guest_id: str
    profile: Dict[str, Any]


class MeResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    is_guest: bool
    email: Optional[str] = None
    is_super_user: bool = False
    profile: Optional[Dict[str, Any]] = None
