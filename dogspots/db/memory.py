from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import inspect

from dogspots.db.store import LOCATION_FIELDS, SUGGESTION_FIELDS, pick
from dogspots.models.enums import SuggestionStatus, UserRole
from dogspots.models.locations import Location
from dogspots.models.suggestions import LocationSuggestion
from dogspots.models.users import User

T = TypeVar("T")


def _clone(obj: T) -> T:
    cls = type(obj)
    return cls(**{attr.key: getattr(obj, attr.key) for attr in inspect(cls).column_attrs})


class MemoryStore:
    """Dict-backed store with the same contract as ``SqlStore``.

    A unit of work holds the store lock for its whole duration and restores a
    snapshot of every table if it fails, so units are serialized and atomic.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self.users: dict[int, User] = {}
        self.locations: dict[int, Location] = {}
        self.suggestions: dict[int, LocationSuggestion] = {}
        self._next_ids = {"users": 1, "locations": 1, "suggestions": 1}

    def _next_id(self, table: str) -> int:
        value = self._next_ids[table]
        self._next_ids[table] = value + 1
        return value

    def _snapshot(self) -> tuple:
        return (
            {k: _clone(v) for k, v in self.users.items()},
            {k: _clone(v) for k, v in self.locations.items()},
            {k: _clone(v) for k, v in self.suggestions.items()},
            dict(self._next_ids),
        )

    def _restore(self, snapshot: tuple) -> None:
        self.users, self.locations, self.suggestions, self._next_ids = snapshot

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        with self._lock:
            snapshot = self._snapshot() if self._depth == 0 else None
            self._depth += 1
            try:
                yield
            except Exception:
                if snapshot is not None:
                    self._restore(snapshot)
                raise
            finally:
                self._depth -= 1

    # Users

    def add_user(self, username: str, *, paw_points: int = 0, role: str = UserRole.user.value) -> User:
        with self._lock:
            user = User(
                id=self._next_id("users"),
                username=username,
                password_hash="",
                role=role,
                is_active=True,
                paw_points=paw_points,
                created_at=datetime.utcnow(),
            )
            self.users[user.id] = user
            return user

    def get_user(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    def update_user_points(self, user_id: int, delta: int) -> User | None:
        with self._lock:
            user = self.users.get(user_id)
            if user is None:
                return None
            user.paw_points += delta
            return user

    # Suggestions

    def get_suggestion_by_id(self, suggestion_id: int) -> LocationSuggestion | None:
        return self.suggestions.get(suggestion_id)

    def list_suggestions(
        self, *, status: str | None = None, user_id: int | None = None
    ) -> list[LocationSuggestion]:
        with self._lock:
            items = [
                s
                for s in self.suggestions.values()
                if (status is None or s.status == status) and (user_id is None or s.user_id == user_id)
            ]
        return sorted(items, key=lambda s: (s.created_at, s.id), reverse=True)

    def create_suggestion(self, fields: dict[str, Any]) -> LocationSuggestion:
        values = {"features": "", "latitude": None, "longitude": None, "photo_url": None}
        values.update(pick(fields, SUGGESTION_FIELDS))
        with self._lock:
            suggestion = LocationSuggestion(
                id=self._next_id("suggestions"),
                status=SuggestionStatus.pending.value,
                created_at=datetime.utcnow(),
                location_id=None,
                **values,
            )
            self.suggestions[suggestion.id] = suggestion
            return suggestion

    def update_suggestion(self, suggestion_id: int, fields: dict[str, Any]) -> LocationSuggestion | None:
        with self._lock:
            suggestion = self.suggestions.get(suggestion_id)
            if suggestion is None:
                return None
            for key, value in pick(fields, SUGGESTION_FIELDS).items():
                if key != "user_id":
                    setattr(suggestion, key, value)
            return suggestion

    def update_suggestion_status(
        self, suggestion_id: int, status: str, *, expected: str | None = None
    ) -> LocationSuggestion | None:
        with self._lock:
            suggestion = self.suggestions.get(suggestion_id)
            if suggestion is None:
                return None
            if expected is not None and suggestion.status != expected:
                return None
            suggestion.status = status
            return suggestion

    def attach_location(self, suggestion_id: int, location_id: int) -> bool:
        with self._lock:
            suggestion = self.suggestions.get(suggestion_id)
            if suggestion is None or suggestion.location_id is not None:
                return False
            suggestion.location_id = location_id
            return True

    # Locations

    def create_location(self, fields: dict[str, Any]) -> Location:
        with self._lock:
            location = Location(id=self._next_id("locations"), **pick(fields, LOCATION_FIELDS))
            self.locations[location.id] = location
            return location

    def get_location_by_id(self, location_id: int) -> Location | None:
        return self.locations.get(location_id)

    def _filter_locations(
        self, *, q: str | None, category: str | None, min_rating: float | None
    ) -> list[Location]:
        with self._lock:
            items = list(self.locations.values())
        if q:
            needle = q.strip().lower()
            items = [
                loc
                for loc in items
                if any(
                    needle in (value or "").lower()
                    for value in (loc.name, loc.description, loc.category, loc.address, loc.features)
                )
            ]
        if category:
            items = [loc for loc in items if loc.category == category.strip()]
        if min_rating is not None:
            items = [loc for loc in items if loc.rating >= min_rating]
        return items

    def list_locations(
        self,
        *,
        q: str | None = None,
        category: str | None = None,
        min_rating: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Location]:
        items = self._filter_locations(q=q, category=category, min_rating=min_rating)
        items.sort(key=lambda loc: (-loc.rating, -loc.review_count, loc.name, loc.id))
        items = items[offset:]
        return items if limit is None else items[:limit]

    def count_locations(
        self, *, q: str | None = None, category: str | None = None, min_rating: float | None = None
    ) -> int:
        return len(self._filter_locations(q=q, category=category, min_rating=min_rating))
