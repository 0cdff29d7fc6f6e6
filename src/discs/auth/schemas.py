from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserPublic(BaseModel):
    id: UUID
    email: EmailStr
    name: str
    created_at: datetime
    updated_at: datetime


class RegisterRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, max_length=256)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)


class UpdateProfileRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)


class UpdatePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=256)
    new_password: str = Field(min_length=8, max_length=256)


class AuthResponse(BaseModel):
    user: UserPublic
    # Raw token is only ever returned here, at issue time.
    token: str | None = None
    expires_at: datetime | None = None


class MessageResponse(BaseModel):
    message: str


class SessionData(BaseModel):
    """JSON payload stored alongside a session row."""

    user_email: str = ""
    user_name: str = ""
