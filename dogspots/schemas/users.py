from __future__ import annotations

from dogspots.schemas.base import CamelModel


class UserPointsResponse(CamelModel):
    user_id: int
    paw_points: int
