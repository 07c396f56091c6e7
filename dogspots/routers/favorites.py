from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dogspots.core.deps import get_current_user
from dogspots.db.session import get_db
from dogspots.models.favorites import Favorite
from dogspots.models.locations import Location
from dogspots.models.users import User
from dogspots.routers.locations import _to_location_response
from dogspots.schemas.favorites import FavoriteResponse, FavoriteStatusResponse
from dogspots.schemas.locations import LocationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me/favorites", tags=["favorites"])


def _find_favorite(db: Session, *, user_id: int, location_id: int) -> Favorite | None:
    return db.scalar(select(Favorite).where(Favorite.user_id == user_id, Favorite.location_id == location_id))


@router.get("", response_model=list[LocationResponse])
def list_favorites(
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[LocationResponse]:
    stmt = (
        select(Location)
        .join(Favorite, Favorite.location_id == Location.id)
        .where(Favorite.user_id == current.id)
        .order_by(Favorite.id)
    )
    return [_to_location_response(loc) for loc in db.scalars(stmt).all()]


@router.get("/{location_id}", response_model=FavoriteStatusResponse)
def is_favorite(
    location_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FavoriteStatusResponse:
    found = _find_favorite(db, user_id=current.id, location_id=location_id)
    return FavoriteStatusResponse(is_favorite=found is not None)


@router.put("/{location_id}", response_model=FavoriteResponse)
def add_favorite(
    location_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FavoriteResponse:
    if not db.get(Location, location_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")

    # Saving twice is harmless: the existing favorite is returned.
    favorite = _find_favorite(db, user_id=current.id, location_id=location_id)
    if favorite is None:
        favorite = Favorite(user_id=current.id, location_id=location_id)
        db.add(favorite)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request saved it first.
            db.rollback()
            favorite = _find_favorite(db, user_id=current.id, location_id=location_id)
            if favorite is None:
                raise
        else:
            db.refresh(favorite)
            logger.info("User %s saved location %s", current.id, location_id)

    return FavoriteResponse.model_validate(favorite)


@router.delete("/{location_id}", status_code=204)
def remove_favorite(
    location_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    favorite = _find_favorite(db, user_id=current.id, location_id=location_id)
    if favorite is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Favorite not found")
    db.delete(favorite)
    db.commit()
