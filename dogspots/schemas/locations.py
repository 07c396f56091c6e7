from __future__ import annotations

from dogspots.schemas.base import CamelModel


class LocationResponse(CamelModel):
    id: int
    name: str
    description: str
    category: str
    address: str
    latitude: float
    longitude: float
    rating: float
    review_count: int
    image_url: str
    features: str
    distance_miles: float


class LocationListResponse(CamelModel):
    items: list[LocationResponse]
    total: int
