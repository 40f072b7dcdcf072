from conftest import PNG
from database import get_documents, save_documents


def _photos(count):
    return [("photos", (f"p{i}.jpg", PNG, "image/jpeg")) for i in range(count)]


def _post_data(**overrides):
    data = {
        "description": "Sunset over Chapman's Peak",
        "lat": "-34.0878",
        "lng": "18.3581",
        "placeName": "Chapman's Peak",
        "formattedAddress": "Chapman's Peak Dr, Cape Town",
    }
    data.update(overrides)
    return data


def _create(client, headers, **overrides):
    r = client.post("/api/travels", data=_post_data(**overrides), files=_photos(2), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_post(client, make_member, tmp_path):
    headers, member = make_member()
    post = _create(client, headers)
    assert post["memberId"] == member["id"]
    assert len(post["photos"]) == 2
    assert all(p.startswith("uploads/travels/travel-") for p in post["photos"])
    assert (tmp_path / post["photos"][0]).exists()
    assert post["location"] == {
        "lat": -34.0878,
        "lng": 18.3581,
        "placeName": "Chapman's Peak",
        "formattedAddress": "Chapman's Peak Dr, Cape Town",
    }
    assert post["member"] == {"id": member["id"], "displayName": "Ana", "avatarImage": None}


def test_create_post_validation(client, make_member):
    headers, _ = make_member()
    r = client.post("/api/travels", data=_post_data(), headers=headers)
    assert r.json()["detail"] == "At least one photo is required"
    r = client.post("/api/travels", data=_post_data(description=""), files=_photos(1), headers=headers)
    assert r.json()["detail"] == "Description is required"
    data = _post_data()
    del data["lat"]
    r = client.post("/api/travels", data=data, files=_photos(1), headers=headers)
    assert r.json()["detail"] == "Location is required"
    r = client.post("/api/travels", data=_post_data(), files=_photos(6), headers=headers)
    assert r.status_code == 400
    assert get_documents("travel-posts") == []


def test_create_post_needs_member(client):
    r = client.post("/api/travels", data=_post_data(), files=_photos(1))
    assert r.status_code == 401


def test_feed_is_newest_first_with_authors(client, make_member):
    _, ana = make_member()
    _, ben = make_member(email="ben@example.com", display_name="Ben")
    location = {"lat": 1.0, "lng": 2.0, "placeName": "", "formattedAddress": ""}
    save_documents("travel-posts", [
        {"id": "old", "memberId": ana["id"], "description": "old", "photos": ["uploads/travels/a.jpg"],
         "location": location, "createdAt": "2026-01-01T10:00:00.000Z", "updatedAt": "2026-01-01T10:00:00.000Z"},
        {"id": "new", "memberId": ben["id"], "description": "new", "photos": ["uploads/travels/b.jpg"],
         "location": location, "createdAt": "2026-03-01T10:00:00.000Z", "updatedAt": "2026-03-01T10:00:00.000Z"},
        {"id": "orphan", "memberId": "gone", "description": "mid", "photos": ["uploads/travels/c.jpg"],
         "location": location, "createdAt": "2026-02-01T10:00:00.000Z", "updatedAt": "2026-02-01T10:00:00.000Z"},
    ])

    feed = client.get("/api/travels").json()
    assert [p["id"] for p in feed] == ["new", "orphan", "old"]
    assert feed[0]["member"]["displayName"] == "Ben"
    assert feed[1]["member"] is None

    pins = client.get("/api/travels/map").json()
    assert {p["id"]: p["memberName"] for p in pins} == {"old": "Ana", "new": "Ben", "orphan": "Unknown"}
    assert pins[0]["thumbnail"] == "uploads/travels/a.jpg"

    by_member = client.get(f"/api/travels/member/{ana['id']}").json()
    assert by_member["member"]["id"] == ana["id"]
    assert [p["id"] for p in by_member["posts"]] == ["old"]


def test_get_single_post(client, make_member):
    headers, _ = make_member()
    post = _create(client, headers)
    r = client.get(f"/api/travels/{post['id']}")
    assert r.status_code == 200
    assert r.json()["member"]["displayName"] == "Ana"
    assert client.get("/api/travels/missing").status_code == 404


def test_owner_can_update(client, make_member):
    headers, _ = make_member()
    post = _create(client, headers)
    r = client.put(f"/api/travels/{post['id']}", json={"description": "Misty morning", "lat": -33.9, "lng": 18.4},
                   headers=headers)
    assert r.status_code == 200
    updated = r.json()
    assert updated["description"] == "Misty morning"
    assert updated["location"]["lat"] == -33.9
    # Place name is kept when not resent
    assert updated["location"]["placeName"] == "Chapman's Peak"


def test_non_owner_cannot_update(client, make_member):
    owner_headers, _ = make_member()
    other_headers, _ = make_member(email="mallory@example.com", display_name="Mallory")
    post = _create(client, owner_headers)
    before = get_documents("travel-posts")

    r = client.put(f"/api/travels/{post['id']}", json={"description": "mine now"}, headers=other_headers)
    assert r.status_code == 403
    assert get_documents("travel-posts") == before


def test_delete_is_owner_only(client, make_member):
    owner_headers, _ = make_member()
    other_headers, _ = make_member(email="mallory@example.com", display_name="Mallory")
    post = _create(client, owner_headers)

    assert client.delete(f"/api/travels/{post['id']}", headers=other_headers).status_code == 403
    r = client.delete(f"/api/travels/{post['id']}", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["post"]["id"] == post["id"]
    assert get_documents("travel-posts") == []


def test_rejected_batch_writes_no_files(client, make_member, tmp_path):
    headers, _ = make_member()
    big = PNG + b"\x00" * (5 * 1024 * 1024)
    files = [("photos", ("small.jpg", PNG, "image/jpeg")), ("photos", ("big.jpg", big, "image/jpeg"))]
    r = client.post("/api/travels", data=_post_data(), files=files, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "File too large (max 5MB)"
    travels_dir = tmp_path / "uploads" / "travels"
    assert not travels_dir.exists() or list(travels_dir.iterdir()) == []
    assert get_documents("travel-posts") == []
