"""Data-access contracts used by the suggestion workflow.

``Store`` is the interface; ``SqlStore`` is the database-backed adapter and
``dogspots.db.memory.MemoryStore`` keeps everything in process memory.  Both
hand out the ORM model classes from ``dogspots.models``.

Write methods never commit on their own: callers group them inside
``unit_of_work()``, which commits on success and rolls back on any error.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, ContextManager, Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from dogspots.models.locations import Location
from dogspots.models.suggestions import LocationSuggestion
from dogspots.models.users import User


LOCATION_FIELDS = (
    "name",
    "description",
    "category",
    "address",
    "latitude",
    "longitude",
    "rating",
    "review_count",
    "image_url",
    "features",
    "distance_miles",
)

SUGGESTION_FIELDS = (
    "name",
    "description",
    "category",
    "address",
    "latitude",
    "longitude",
    "features",
    "photo_url",
    "user_id",
)


def pick(fields: dict[str, Any], allowed: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if k in allowed}


class Store(Protocol):
    def unit_of_work(self) -> ContextManager[None]: ...

    def get_suggestion_by_id(self, suggestion_id: int) -> LocationSuggestion | None: ...

    def list_suggestions(
        self, *, status: str | None = None, user_id: int | None = None
    ) -> list[LocationSuggestion]: ...

    def create_suggestion(self, fields: dict[str, Any]) -> LocationSuggestion: ...

    def update_suggestion(self, suggestion_id: int, fields: dict[str, Any]) -> LocationSuggestion | None: ...

    def update_suggestion_status(
        self, suggestion_id: int, status: str, *, expected: str | None = None
    ) -> LocationSuggestion | None: ...

    def attach_location(self, suggestion_id: int, location_id: int) -> bool: ...

    def create_location(self, fields: dict[str, Any]) -> Location: ...

    def get_location_by_id(self, location_id: int) -> Location | None: ...

    def list_locations(
        self,
        *,
        q: str | None = None,
        category: str | None = None,
        min_rating: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Location]: ...

    def count_locations(
        self, *, q: str | None = None, category: str | None = None, min_rating: float | None = None
    ) -> int: ...

    def get_user(self, user_id: int) -> User | None: ...

    def update_user_points(self, user_id: int, delta: int) -> User | None: ...


class SqlStore:
    """Store adapter over a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self._depth = 0

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        # Nested units join the outermost one; only it commits or rolls back.
        self._depth += 1
        try:
            yield
            if self._depth == 1:
                self.db.commit()
        except Exception:
            if self._depth == 1:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1

    # Suggestions

    def get_suggestion_by_id(self, suggestion_id: int) -> LocationSuggestion | None:
        return self.db.get(LocationSuggestion, suggestion_id)

    def list_suggestions(
        self, *, status: str | None = None, user_id: int | None = None
    ) -> list[LocationSuggestion]:
        stmt = select(LocationSuggestion)
        if status is not None:
            stmt = stmt.where(LocationSuggestion.status == status)
        if user_id is not None:
            stmt = stmt.where(LocationSuggestion.user_id == user_id)
        stmt = stmt.order_by(LocationSuggestion.created_at.desc(), LocationSuggestion.id.desc())
        return list(self.db.scalars(stmt).all())

    def create_suggestion(self, fields: dict[str, Any]) -> LocationSuggestion:
        suggestion = LocationSuggestion(**pick(fields, SUGGESTION_FIELDS))
        self.db.add(suggestion)
        self.db.flush()
        return suggestion

    def update_suggestion(self, suggestion_id: int, fields: dict[str, Any]) -> LocationSuggestion | None:
        suggestion = self.db.get(LocationSuggestion, suggestion_id)
        if suggestion is None:
            return None
        for key, value in pick(fields, SUGGESTION_FIELDS).items():
            if key != "user_id":
                setattr(suggestion, key, value)
        self.db.flush()
        return suggestion

    def update_suggestion_status(
        self, suggestion_id: int, status: str, *, expected: str | None = None
    ) -> LocationSuggestion | None:
        """Set the status; with ``expected``, only if the row still holds it.

        Returns ``None`` when no row matched.
        """

        stmt = update(LocationSuggestion).where(LocationSuggestion.id == suggestion_id)
        if expected is not None:
            stmt = stmt.where(LocationSuggestion.status == expected)
        stmt = stmt.values(status=status).execution_options(synchronize_session=False)

        result = self.db.execute(stmt)
        if not result.rowcount:
            return None
        return self.db.get(LocationSuggestion, suggestion_id, populate_existing=True)

    def attach_location(self, suggestion_id: int, location_id: int) -> bool:
        stmt = (
            update(LocationSuggestion)
            .where(LocationSuggestion.id == suggestion_id, LocationSuggestion.location_id.is_(None))
            .values(location_id=location_id)
            .execution_options(synchronize_session=False)
        )
        attached = bool(self.db.execute(stmt).rowcount)
        # Refresh the instance already held by callers.
        self.db.get(LocationSuggestion, suggestion_id, populate_existing=True)
        return attached

    # Locations

    def create_location(self, fields: dict[str, Any]) -> Location:
        location = Location(**pick(fields, LOCATION_FIELDS))
        self.db.add(location)
        self.db.flush()
        return location

    def get_location_by_id(self, location_id: int) -> Location | None:
        return self.db.get(Location, location_id)

    def _location_query(self, *, q: str | None, category: str | None, min_rating: float | None):
        stmt = select(Location)
        if q:
            # Literal substring match: % and _ in the needle are escaped.
            needle = q.strip().lower()
            columns = (Location.name, Location.description, Location.category, Location.address, Location.features)
            stmt = stmt.where(or_(*(func.lower(col).contains(needle, autoescape=True) for col in columns)))
        if category:
            stmt = stmt.where(Location.category == category.strip())
        if min_rating is not None:
            stmt = stmt.where(Location.rating >= min_rating)
        return stmt

    def list_locations(
        self,
        *,
        q: str | None = None,
        category: str | None = None,
        min_rating: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Location]:
        stmt = self._location_query(q=q, category=category, min_rating=min_rating)
        stmt = stmt.order_by(Location.rating.desc(), Location.review_count.desc(), Location.name, Location.id)
        stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt).all())

    def count_locations(
        self, *, q: str | None = None, category: str | None = None, min_rating: float | None = None
    ) -> int:
        stmt = self._location_query(q=q, category=category, min_rating=min_rating)
        return int(self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0)

    # Users / reward ledger

    def get_user(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def update_user_points(self, user_id: int, delta: int) -> User | None:
        # Single UPDATE so concurrent credits cannot overwrite each other.
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(paw_points=User.paw_points + delta)
            .execution_options(synchronize_session=False)
        )
        if not self.db.execute(stmt).rowcount:
            return None
        return self.db.get(User, user_id, populate_existing=True)
