"""Suggestion review workflow.

An administrator moves a suggestion between ``pending``, ``approved`` and
``rejected``.  The first time a suggestion is approved it is promoted to a
published ``Location`` and its submitter is credited with paw points.  The
status change, the promotion and the credit are one unit of work: either all
of them are stored or none is.

A suggestion is promoted at most once.  Approving it again later (for example
after moving it back to ``pending``) only changes the status.
"""

from __future__ import annotations

import logging
from typing import Any

from dogspots.core.config import Settings, settings as default_settings
from dogspots.db.store import Store
from dogspots.models.enums import SuggestionStatus
from dogspots.models.locations import Location
from dogspots.models.suggestions import LocationSuggestion

logger = logging.getLogger(__name__)

# Promoted locations start with a visible, not earned, rating.
INITIAL_RATING = 4.0
INITIAL_REVIEW_COUNT = 1
PLACEHOLDER_DISTANCE_MILES = 0.5

PLACEHOLDER_IMAGES = {
    "cafe": "https://images.unsplash.com/photo-1559925393-8be0ec4767c8?ixlib=rb-4.0.3",
    "restaurant": "https://images.unsplash.com/photo-1555396273-367ea4eb4db5?ixlib=rb-4.0.3",
    "park": "https://images.unsplash.com/photo-1551730459-92db2a308d6a?ixlib=rb-4.0.3",
    "shop": "https://images.unsplash.com/photo-1583337130417-3346a1be7dee?ixlib=rb-4.0.3",
}
DEFAULT_PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1548199973-03cce0bbc87b?ixlib=rb-4.0.3"


class ApprovalError(Exception):
    pass


class InvalidStatus(ApprovalError):
    def __init__(self, status: Any) -> None:
        super().__init__(f"Invalid status: {status!r}")
        self.status = status


class SuggestionNotFound(ApprovalError):
    def __init__(self, suggestion_id: int) -> None:
        super().__init__(f"Suggestion {suggestion_id} not found")
        self.suggestion_id = suggestion_id


class StatusConflict(ApprovalError):
    """The suggestion changed status while this request was processing it."""

    def __init__(self, suggestion_id: int) -> None:
        super().__init__(f"Suggestion {suggestion_id} was modified concurrently")
        self.suggestion_id = suggestion_id


class SubmitterNotFound(ApprovalError):
    def __init__(self, suggestion_id: int, user_id: int) -> None:
        super().__init__(f"Submitter {user_id} of suggestion {suggestion_id} not found")
        self.suggestion_id = suggestion_id
        self.user_id = user_id


def placeholder_image(category: str) -> str:
    return PLACEHOLDER_IMAGES.get((category or "").strip().lower(), DEFAULT_PLACEHOLDER_IMAGE)


def location_fields_from(suggestion: LocationSuggestion, *, settings: Settings) -> dict[str, Any]:
    """Build the fields of the Location that promotes ``suggestion``."""

    latitude, longitude = suggestion.latitude, suggestion.longitude
    if latitude is None or longitude is None:
        latitude, longitude = settings.fallback_latitude, settings.fallback_longitude

    return {
        "name": suggestion.name,
        "description": suggestion.description,
        "category": suggestion.category,
        "address": suggestion.address,
        "features": suggestion.features,
        "latitude": latitude,
        "longitude": longitude,
        "rating": INITIAL_RATING,
        "review_count": INITIAL_REVIEW_COUNT,
        "image_url": suggestion.photo_url or placeholder_image(suggestion.category),
        "distance_miles": PLACEHOLDER_DISTANCE_MILES,
    }


def _promote(store: Store, suggestion: LocationSuggestion, *, settings: Settings) -> Location | None:
    if suggestion.location_id is not None:
        logger.info(
            "Suggestion %s already promoted to location %s, not promoting again",
            suggestion.id,
            suggestion.location_id,
        )
        return None

    location = store.create_location(location_fields_from(suggestion, settings=settings))
    if not store.attach_location(suggestion.id, location.id):
        raise StatusConflict(suggestion.id)

    user = store.update_user_points(suggestion.user_id, settings.suggestion_reward_points)
    if user is None:
        raise SubmitterNotFound(suggestion.id, suggestion.user_id)

    logger.info(
        "Suggestion %s promoted to location %s; user %s credited %s points (total %s)",
        suggestion.id,
        location.id,
        user.id,
        settings.suggestion_reward_points,
        user.paw_points,
    )
    return location


def set_suggestion_status(
    store: Store,
    suggestion_id: int,
    status: Any,
    *,
    settings: Settings | None = None,
) -> LocationSuggestion:
    """Move suggestion ``suggestion_id`` to ``status`` and return it.

    Raises ``InvalidStatus`` before touching the store, ``SuggestionNotFound``
    for unknown ids and ``StatusConflict`` when a concurrent request changed
    the suggestion first.  Store errors propagate after the unit of work has
    been rolled back.
    """

    settings = settings or default_settings

    target = SuggestionStatus.parse(status) if isinstance(status, str) else None
    if target is None:
        raise InvalidStatus(status)

    with store.unit_of_work():
        suggestion = store.get_suggestion_by_id(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFound(suggestion_id)

        previous = suggestion.status
        if previous == target.value:
            logger.info("Suggestion %s is already %s", suggestion_id, previous)
            return suggestion

        updated = store.update_suggestion_status(suggestion_id, target.value, expected=previous)
        if updated is None:
            raise StatusConflict(suggestion_id)

        if target is SuggestionStatus.approved:
            _promote(store, updated, settings=settings)

        logger.info("Suggestion %s: %s -> %s", suggestion_id, previous, target.value)

    return updated
