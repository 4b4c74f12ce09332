"""Authentication schemas."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    avatar: Optional[str] = None
    role: Literal["admin", "client"] = "client"
    email_verified: bool = False


class SessionResponse(BaseModel):
    """Returned by sign-in and sign-up."""

    token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: UserResponse


class AuthActionResponse(BaseModel):
    """Outcome of the unified one-time-code handler."""

    mode: Literal["resetPassword", "verifyEmail"]
    status: Literal["awaiting_new_password", "password_updated", "email_verified"]
    email: Optional[str] = None
