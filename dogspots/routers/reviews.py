from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dogspots.core.deps import get_current_user
from dogspots.db.session import get_db
from dogspots.models.locations import Location
from dogspots.models.reviews import Review
from dogspots.models.users import User
from dogspots.schemas.reviews import ReviewCreate, ReviewListResponse, ReviewResponse, ReviewUpdate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews"])


def _to_review_response(r: Review) -> ReviewResponse:
    return ReviewResponse.model_validate(r)


def _find_review(db: Session, *, user_id: int, location_id: int) -> Review | None:
    return db.scalar(select(Review).where(Review.location_id == location_id, Review.user_id == user_id))


def _get_own_review(db: Session, review_id: int, user: User) -> Review:
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    if review.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the author of this review")
    return review


@router.post("/locations/{location_id}/reviews", response_model=ReviewResponse, status_code=201)
def create_review(
    location_id: int,
    payload: ReviewCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReviewResponse:
    if not db.get(Location, location_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")

    if _find_review(db, user_id=current.id, location_id=location_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Location already reviewed")

    review = Review(
        location_id=location_id,
        user_id=current.id,
        rating=payload.rating,
        content=payload.content.strip(),
        photo_url=(payload.photo_url or "").strip() or None,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent review by the same user.
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Location already reviewed")
    db.refresh(review)

    return _to_review_response(review)


@router.get("/locations/{location_id}/reviews", response_model=ReviewListResponse)
def list_reviews(
    location_id: int,
    db: Session = Depends(get_db),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ReviewListResponse:
    if not db.get(Location, location_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")

    stmt = (
        select(Review)
        .where(Review.location_id == location_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    items = list(db.scalars(stmt.limit(limit).offset(offset)).all())
    return ReviewListResponse(items=[_to_review_response(r) for r in items], total=int(total or 0))


@router.get("/me/reviews", response_model=list[ReviewResponse])
def my_reviews(
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ReviewResponse]:
    stmt = select(Review).where(Review.user_id == current.id).order_by(Review.created_at.desc())
    return [_to_review_response(r) for r in db.scalars(stmt).all()]


@router.put("/reviews/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReviewResponse:
    review = _get_own_review(db, review_id, current)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("rating") is not None:
        review.rating = changes["rating"]
    if changes.get("content") is not None:
        review.content = changes["content"].strip()
    if "photo_url" in changes:
        review.photo_url = (changes["photo_url"] or "").strip() or None

    db.add(review)
    db.commit()
    db.refresh(review)
    return _to_review_response(review)


@router.delete("/reviews/{review_id}", status_code=204)
def delete_review(
    review_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    review = _get_own_review(db, review_id, current)
    db.delete(review)
    db.commit()
    logger.info("User %s deleted review %s", current.id, review_id)
