from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from dogspots.core.deps import get_current_user, get_store
from dogspots.db.store import SqlStore
from dogspots.models.users import User
from dogspots.routers.suggestions import _to_suggestion_response
from dogspots.schemas.auth import UserMeResponse
from dogspots.schemas.suggestions import SuggestionResponse
from dogspots.schemas.users import UserPointsResponse

router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserMeResponse)
def me(current: User = Depends(get_current_user)) -> UserMeResponse:
    return UserMeResponse.model_validate(current)


@router.get("/users/{user_id}/points", response_model=UserPointsResponse)
def get_points(user_id: int, store: SqlStore = Depends(get_store)) -> UserPointsResponse:
    user = store.get_user(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserPointsResponse(user_id=user.id, paw_points=user.paw_points)


@router.get("/users/{user_id}/suggestions", response_model=list[SuggestionResponse])
def list_user_suggestions(user_id: int, store: SqlStore = Depends(get_store)) -> list[SuggestionResponse]:
    if not store.get_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return [_to_suggestion_response(s) for s in store.list_suggestions(user_id=user_id)]
