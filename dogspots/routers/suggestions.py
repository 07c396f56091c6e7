from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dogspots.core.deps import get_current_user, get_store, require_role
from dogspots.db.store import SqlStore
from dogspots.models.enums import SuggestionStatus, UserRole
from dogspots.models.suggestions import LocationSuggestion
from dogspots.models.users import User
from dogspots.schemas.suggestions import (
    StatusUpdate,
    SuggestionCreate,
    SuggestionEdit,
    SuggestionResponse,
)
from dogspots.services.approval import (
    InvalidStatus,
    StatusConflict,
    SubmitterNotFound,
    SuggestionNotFound,
    set_suggestion_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["suggestions"])

admin_only = [Depends(require_role(UserRole.admin))]

# Columns that may not be cleared by an edit.
_REQUIRED_FIELDS = {"name", "description", "category", "address", "features"}


def _to_suggestion_response(s: LocationSuggestion) -> SuggestionResponse:
    return SuggestionResponse.model_validate(s)


@router.post("/locations/suggest", response_model=SuggestionResponse, status_code=201)
def suggest_location(
    payload: SuggestionCreate,
    current: User = Depends(get_current_user),
    store: SqlStore = Depends(get_store),
) -> SuggestionResponse:
    fields = payload.model_dump()
    fields["photo_url"] = (fields.get("photo_url") or "").strip() or None
    fields["user_id"] = current.id

    with store.unit_of_work():
        suggestion = store.create_suggestion(fields)

    logger.info("User %s suggested %r (suggestion %s)", current.id, suggestion.name, suggestion.id)
    return _to_suggestion_response(suggestion)


@router.get("/suggestions", response_model=list[SuggestionResponse], dependencies=admin_only)
def list_suggestions(
    store: SqlStore = Depends(get_store),
    status_filter: str | None = Query(default=None, alias="status"),
) -> list[SuggestionResponse]:
    if status_filter is not None and SuggestionStatus.parse(status_filter) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    return [_to_suggestion_response(s) for s in store.list_suggestions(status=status_filter)]


@router.get("/suggestions/{suggestion_id}", response_model=SuggestionResponse, dependencies=admin_only)
def get_suggestion(suggestion_id: int, store: SqlStore = Depends(get_store)) -> SuggestionResponse:
    suggestion = store.get_suggestion_by_id(suggestion_id)
    if not suggestion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found")
    return _to_suggestion_response(suggestion)


@router.put("/suggestions/{suggestion_id}/status", response_model=SuggestionResponse)
def update_suggestion_status(
    suggestion_id: int,
    payload: StatusUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    store: SqlStore = Depends(get_store),
) -> SuggestionResponse:
    try:
        suggestion = set_suggestion_status(store, suggestion_id, payload.status)
    except InvalidStatus:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    except SuggestionNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found")
    except (StatusConflict, SubmitterNotFound) as exc:
        logger.warning("Status update of suggestion %s by admin %s failed: %s", suggestion_id, admin.id, exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    return _to_suggestion_response(suggestion)


@router.put("/suggestions/{suggestion_id}/edit", response_model=SuggestionResponse, dependencies=admin_only)
def edit_suggestion(
    suggestion_id: int,
    payload: SuggestionEdit,
    store: SqlStore = Depends(get_store),
) -> SuggestionResponse:
    fields = payload.model_dump(exclude_unset=True)
    cleared = sorted(k for k, v in fields.items() if v is None and k in _REQUIRED_FIELDS)
    if cleared:
        raise HTTPException(
            status_code=422,
            detail=f"Fields cannot be empty: {', '.join(cleared)}",
        )

    with store.unit_of_work():
        suggestion = store.update_suggestion(suggestion_id, fields)
        if not suggestion:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found")
        if (suggestion.latitude is None) != (suggestion.longitude is None):
            raise HTTPException(
                status_code=422,
                detail="latitude and longitude must be given together",
            )

    return _to_suggestion_response(suggestion)
