"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["viewer", "reviewer", "admin"]


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=8, max_length=128, description="Password")


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class CurrentUser(BaseModel):
    """Authenticated reviewer injected into endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: Role


class UserListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: Role
    is_active: bool = True
    last_login_at: datetime | None = None


class UsersListResponse(BaseModel):
    users: list[UserListItem]
