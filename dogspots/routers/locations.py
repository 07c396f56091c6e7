from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dogspots.core.deps import get_store
from dogspots.db.store import SqlStore
from dogspots.models.locations import Location
from dogspots.schemas.locations import LocationListResponse, LocationResponse

router = APIRouter(prefix="/locations", tags=["locations"])


def _to_location_response(location: Location) -> LocationResponse:
    return LocationResponse.model_validate(location)


@router.get("", response_model=LocationListResponse)
def list_locations(
    store: SqlStore = Depends(get_store),
    q: str | None = Query(default=None, max_length=200),
    category: str | None = Query(default=None, max_length=80),
    min_rating: float | None = Query(default=None, ge=0, le=5),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> LocationListResponse:
    filters = {"q": q, "category": category, "min_rating": min_rating}
    items = store.list_locations(**filters, limit=limit, offset=offset)
    return LocationListResponse(
        items=[_to_location_response(loc) for loc in items],
        total=store.count_locations(**filters),
    )


@router.get("/{location_id}", response_model=LocationResponse)
def get_location(location_id: int, store: SqlStore = Depends(get_store)) -> LocationResponse:
    location = store.get_location_by_id(location_id)
    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return _to_location_response(location)
