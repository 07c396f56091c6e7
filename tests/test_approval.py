from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import OperationalError

from dogspots.core.config import Settings
from dogspots.db.memory import MemoryStore
from dogspots.db.session import SessionLocal
from dogspots.db.store import SqlStore
from dogspots.models.users import User
from dogspots.services.approval import (
    INITIAL_RATING,
    InvalidStatus,
    StatusConflict,
    SubmitterNotFound,
    SuggestionNotFound,
    placeholder_image,
    set_suggestion_status,
)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return MemoryStore()
    return SqlStore(request.getfixturevalue("db"))


def _add_user(store, username, paw_points=0):
    if isinstance(store, MemoryStore):
        return store.add_user(username, paw_points=paw_points).id
    user = User(username=username, password_hash="x", paw_points=paw_points)
    store.db.add(user)
    store.db.commit()
    return user.id


def _suggest(store, user_id, **overrides):
    fields = {
        "name": "Dog Park Cafe",
        "description": "Cafe next to the dog park with water bowls",
        "category": "cafe",
        "address": "1 Bark Lane, London",
        "features": "Water bowls,Outdoor seating",
        "latitude": 51.53,
        "longitude": -0.12,
        "photo_url": None,
        "user_id": user_id,
    }
    fields.update(overrides)
    with store.unit_of_work():
        return store.create_suggestion(fields).id


def _locations_named(store, name):
    return [loc for loc in store.list_locations() if loc.name == name]


def test_approve_promotes_and_credits(store):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id)

    result = set_suggestion_status(store, suggestion_id, "approved")

    assert result.status == "approved"
    locations = _locations_named(store, "Dog Park Cafe")
    assert len(locations) == 1
    loc = locations[0]
    assert result.location_id == loc.id
    assert (loc.description, loc.category, loc.address, loc.features) == (
        "Cafe next to the dog park with water bowls",
        "cafe",
        "1 Bark Lane, London",
        "Water bowls,Outdoor seating",
    )
    assert (loc.latitude, loc.longitude) == (51.53, -0.12)
    assert loc.rating == INITIAL_RATING
    assert loc.review_count == 1
    assert loc.distance_miles == 0.5
    assert loc.image_url == placeholder_image("cafe")
    assert store.get_user(user_id).paw_points == 5


def test_reject_changes_status_only(store):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id)

    result = set_suggestion_status(store, suggestion_id, "rejected")

    assert result.status == "rejected"
    assert result.location_id is None
    assert store.count_locations() == 0
    assert store.get_user(user_id).paw_points == 0


@pytest.mark.parametrize("bad", ["archived", "APPROVED", "", None, 3])
def test_invalid_status_changes_nothing(store, bad):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id)

    with pytest.raises(InvalidStatus):
        set_suggestion_status(store, suggestion_id, bad)

    assert store.get_suggestion_by_id(suggestion_id).status == "pending"
    assert store.count_locations() == 0
    assert store.get_user(user_id).paw_points == 0


def test_invalid_status_checked_before_store_access():
    class ExplodingStore:
        def __getattr__(self, name):
            raise AssertionError(f"store.{name} touched")

    with pytest.raises(InvalidStatus):
        set_suggestion_status(ExplodingStore(), 1, "archived")


def test_unknown_suggestion_not_found(store):
    _add_user(store, "dogLover")

    with pytest.raises(SuggestionNotFound):
        set_suggestion_status(store, 999, "approved")

    assert store.count_locations() == 0


def test_repeated_approval_promotes_once(store):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id)

    set_suggestion_status(store, suggestion_id, "approved")
    again = set_suggestion_status(store, suggestion_id, "approved")

    assert again.status == "approved"
    assert len(_locations_named(store, "Dog Park Cafe")) == 1
    assert store.get_user(user_id).paw_points == 5


def test_reapproval_after_moving_back_does_not_promote_again(store):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id)

    first = set_suggestion_status(store, suggestion_id, "approved")
    location_id = first.location_id
    assert set_suggestion_status(store, suggestion_id, "pending").status == "pending"
    assert set_suggestion_status(store, suggestion_id, "rejected").status == "rejected"
    final = set_suggestion_status(store, suggestion_id, "approved")

    assert final.status == "approved"
    assert final.location_id == location_id
    assert store.count_locations() == 1
    assert store.get_user(user_id).paw_points == 5


def test_rejected_then_approved_promotes(store):
    user_id = _add_user(store, "dogLover", paw_points=10)
    suggestion_id = _suggest(store, user_id)

    set_suggestion_status(store, suggestion_id, "rejected")
    set_suggestion_status(store, suggestion_id, "approved")

    assert store.count_locations() == 1
    assert store.get_user(user_id).paw_points == 15


def test_missing_coordinates_use_configured_fallback(store):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id, latitude=None, longitude=None, category="park", photo_url="https://x/p.jpg")
    custom = Settings(fallback_latitude=40.0, fallback_longitude=-74.0, suggestion_reward_points=7)

    set_suggestion_status(store, suggestion_id, "approved", settings=custom)

    loc = _locations_named(store, "Dog Park Cafe")[0]
    assert (loc.latitude, loc.longitude) == (40.0, -74.0)
    assert loc.image_url == "https://x/p.jpg"
    assert store.get_user(user_id).paw_points == 7


def test_placeholder_image_for_unknown_category():
    assert placeholder_image("Park") == placeholder_image("park")
    assert placeholder_image("vet") != placeholder_image("park")


def test_failed_credit_rolls_back_everything(store, monkeypatch):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id)

    def broken_ledger(user_id, delta):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(store, "update_user_points", broken_ledger)

    with pytest.raises(OperationalError):
        set_suggestion_status(store, suggestion_id, "approved")

    assert store.get_suggestion_by_id(suggestion_id).status == "pending"
    assert store.get_suggestion_by_id(suggestion_id).location_id is None
    assert store.count_locations() == 0
    assert store.get_user(user_id).paw_points == 0


def test_missing_submitter_rolls_back(store):
    suggestion_id = _suggest(store, 424242)

    with pytest.raises(SubmitterNotFound):
        set_suggestion_status(store, suggestion_id, "approved")

    assert store.get_suggestion_by_id(suggestion_id).status == "pending"
    assert store.count_locations() == 0


def test_lost_compare_and_set_is_a_conflict(store, monkeypatch):
    user_id = _add_user(store, "dogLover")
    suggestion_id = _suggest(store, user_id)

    # Simulate another request changing the status between read and write.
    monkeypatch.setattr(store, "update_suggestion_status", lambda *args, **kwargs: None)

    with pytest.raises(StatusConflict):
        set_suggestion_status(store, suggestion_id, "approved")

    assert store.count_locations() == 0


def test_concurrent_credits_memory_store():
    store = MemoryStore()
    user_id = store.add_user("dogLover", paw_points=3).id

    def credit(_):
        with store.unit_of_work():
            store.update_user_points(user_id, 5)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(credit, range(40)))

    assert store.get_user(user_id).paw_points == 3 + 5 * 40


def test_concurrent_credits_sql_store(db):
    user = User(username="dogLover", password_hash="x", paw_points=3)
    db.add(user)
    db.commit()
    user_id = user.id

    def credit(_):
        session = SessionLocal()
        try:
            store = SqlStore(session)
            with store.unit_of_work():
                store.update_user_points(user_id, 5)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(credit, range(20)))

    db.expire_all()
    assert db.get(User, user_id).paw_points == 3 + 5 * 20


def test_concurrent_approvals_promote_once_sql_store(db):
    user = User(username="dogLover", password_hash="x")
    db.add(user)
    db.commit()
    suggestion_id = _suggest(SqlStore(db), user.id)

    def approve(_):
        session = SessionLocal()
        try:
            try:
                set_suggestion_status(SqlStore(session), suggestion_id, "approved")
            except StatusConflict:
                return "conflict"
            return "ok"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        outcomes = list(pool.map(approve, range(4)))

    assert "ok" in outcomes
    store = SqlStore(db)
    db.expire_all()
    assert store.count_locations() == 1
    assert store.get_user(user.id).paw_points == 5
    assert store.get_suggestion_by_id(suggestion_id).status == "approved"
