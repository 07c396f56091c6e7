from dogspots.models.locations import Location


def _seed_location(db, name="Central Bark Park"):
    loc = Location(
        name=name,
        description="Large off-leash dog park",
        category="park",
        address="789 Green St",
        latitude=51.52,
        longitude=-0.13,
        rating=4.8,
        review_count=356,
        image_url="https://example.com/park.jpg",
        features="Off-leash area,Water fountains",
        distance_miles=1.2,
    )
    db.add(loc)
    db.commit()
    return loc.id


def test_save_check_and_remove_favorite(client, db, user_headers):
    loc_id = _seed_location(db)

    assert client.get(f"/me/favorites/{loc_id}", headers=user_headers).json() == {"isFavorite": False}

    r = client.put(f"/me/favorites/{loc_id}", headers=user_headers)
    assert r.status_code == 200, r.text
    assert r.json()["locationId"] == loc_id

    # Saving again returns the same favorite.
    again = client.put(f"/me/favorites/{loc_id}", headers=user_headers)
    assert again.json()["id"] == r.json()["id"]

    assert client.get(f"/me/favorites/{loc_id}", headers=user_headers).json() == {"isFavorite": True}
    saved = client.get("/me/favorites", headers=user_headers).json()
    assert [x["name"] for x in saved] == ["Central Bark Park"]

    assert client.delete(f"/me/favorites/{loc_id}", headers=user_headers).status_code == 204
    assert client.delete(f"/me/favorites/{loc_id}", headers=user_headers).status_code == 404
    assert client.get("/me/favorites", headers=user_headers).json() == []


def test_favorite_unknown_location_404(client, user_headers):
    assert client.put("/me/favorites/12345", headers=user_headers).status_code == 404


def test_favorites_are_per_user(client, db, user_headers):
    from conftest import auth_header, register

    loc_id = _seed_location(db)
    client.put(f"/me/favorites/{loc_id}", headers=user_headers)

    other = auth_header(register(client, "otheruser"))
    assert client.get("/me/favorites", headers=other).json() == []


def test_concurrent_save_returns_existing_favorite(client, db, user_headers, monkeypatch):
    import dogspots.routers.favorites as favorites_router

    loc_id = _seed_location(db)
    first = client.put(f"/me/favorites/{loc_id}", headers=user_headers).json()

    real_find = favorites_router._find_favorite
    calls = []

    def stale_first_lookup(*args, **kwargs):
        calls.append(1)
        return None if len(calls) == 1 else real_find(*args, **kwargs)

    monkeypatch.setattr(favorites_router, "_find_favorite", stale_first_lookup)

    r = client.put(f"/me/favorites/{loc_id}", headers=user_headers)
    assert r.status_code == 200, r.text
    assert r.json()["id"] == first["id"]
    assert len(calls) == 2
    assert len(client.get("/me/favorites", headers=user_headers).json()) == 1
