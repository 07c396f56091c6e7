from __future__ import annotations

from pydantic import BaseModel, Field

from dogspots.schemas.base import CamelModel


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=80, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=8, max_length=72)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserMeResponse(CamelModel):
    id: int
    username: str
    role: str
    is_active: bool
    paw_points: int
