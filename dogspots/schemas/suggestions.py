from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from dogspots.schemas.base import CamelModel


class SuggestionCreate(CamelModel):
    # Status and submitter are never taken from the payload.
    name: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=5000)
    category: str = Field(min_length=1, max_length=80)
    address: str = Field(min_length=5, max_length=250)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    features: str = Field(default="", max_length=2000)
    photo_url: str | None = None

    @model_validator(mode="after")
    def _coordinates_together(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class SuggestionEdit(CamelModel):
    name: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, min_length=10, max_length=5000)
    category: str | None = Field(default=None, min_length=1, max_length=80)
    address: str | None = Field(default=None, min_length=5, max_length=250)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    features: str | None = Field(default=None, max_length=2000)
    photo_url: str | None = None


class StatusUpdate(CamelModel):
    # Validated by the approval service so unknown values map to 400.
    status: str


class SuggestionResponse(CamelModel):
    id: int
    name: str
    description: str
    category: str
    address: str
    latitude: float | None
    longitude: float | None
    features: str
    photo_url: str | None
    user_id: int
    status: str
    created_at: datetime
    location_id: int | None
