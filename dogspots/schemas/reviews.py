from __future__ import annotations

from datetime import datetime

from pydantic import Field

from dogspots.schemas.base import CamelModel


class ReviewCreate(CamelModel):
    rating: int = Field(ge=1, le=5)
    content: str = Field(min_length=3, max_length=2000)
    photo_url: str | None = None


class ReviewUpdate(CamelModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    content: str | None = Field(default=None, min_length=3, max_length=2000)
    photo_url: str | None = None


class ReviewResponse(CamelModel):
    id: int
    location_id: int
    user_id: int
    rating: int
    content: str
    photo_url: str | None
    created_at: datetime


class ReviewListResponse(CamelModel):
    items: list[ReviewResponse]
    total: int
