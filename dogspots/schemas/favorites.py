from __future__ import annotations

from dogspots.schemas.base import CamelModel


class FavoriteResponse(CamelModel):
    id: int
    user_id: int
    location_id: int


class FavoriteStatusResponse(CamelModel):
    is_favorite: bool
