from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from dogspots.core.security import decode_access_token
from dogspots.db.session import get_db
from dogspots.db.store import SqlStore
from dogspots.models.enums import UserRole
from dogspots.models.users import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    try:
        payload = decode_access_token(token)
        subject: str | None = payload.get("sub")
        if not subject or not subject.isdigit():
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.get(User, int(subject))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive or not found")
    return user


def require_role(*allowed: UserRole):
    """Dependency factory: the caller must hold one of ``allowed`` roles."""

    allowed_values = {r.value for r in allowed}

    def _dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed_values:
            logger.warning("User %s (role=%s) denied, needs one of %s", user.id, user.role, sorted(allowed_values))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _dep


def get_store(db: Session = Depends(get_db)) -> SqlStore:
    return SqlStore(db)
