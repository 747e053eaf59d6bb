from datetime import datetime, timedelta

from dealership.models import Lead


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_catalog_lists_only_active_vehicles_newest_first(client, make_vehicle):
    now = datetime.utcnow()
    older = make_vehicle(created_at=now - timedelta(days=2))
    newer = make_vehicle(created_at=now - timedelta(days=1))
    make_vehicle(status="draft")
    make_vehicle(status="sold")

    resp = client.get("/vehicles")
    assert resp.status_code == 200
    assert [v["id"] for v in resp.json()] == [newer.id, older.id]


def test_catalog_filters_and_sorts(client, make_vehicle):
    cheap = make_vehicle(selling_price=9000.0, fuel_type="petrol", mileage=120000)
    expensive = make_vehicle(selling_price=45000.0, fuel_type="diesel", mileage=10000)
    make_vehicle(manufacturer="Audi", slug="audi-a4-9", selling_price=30000.0, fuel_type="diesel")

    resp = client.get("/vehicles", params={"sort": "price-asc", "manufacturer": "bmw"})
    assert [v["id"] for v in resp.json()] == [cheap.id, expensive.id]

    resp = client.get("/vehicles", params={"sort": "km-asc", "fuel_type": "diesel", "price_min": 40000})
    assert [v["id"] for v in resp.json()] == [expensive.id]


def test_catalog_is_empty_when_store_unreachable(unreachable_store):
    client = unreachable_store

    resp = client.get("/vehicles")
    assert resp.status_code == 200
    assert resp.json() == []

    resp = client.get("/blog")
    assert resp.status_code == 200
    assert resp.json()["posts"] == []

    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["featured_vehicles"] == []
    assert resp.json()["stats"] == {"total": 0, "available": 0}


def test_detail_pages_are_not_found_when_store_unreachable(unreachable_store):
    resp = unreachable_store.get("/vehicles/bmw-320d-1")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Vehicle not found"}

    resp = unreachable_store.get("/blog/some-post")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Blog post not found"}


def test_home_shows_six_newest_vehicles(client, make_vehicle):
    for _ in range(8):
        make_vehicle()

    body = client.get("/").json()
    assert len(body["featured_vehicles"]) == 6
    assert body["stats"] == {"total": 8, "available": 8}


def test_vehicle_detail_hides_drafts(client, make_vehicle):
    active = make_vehicle()
    draft = make_vehicle(status="draft")
    sold = make_vehicle(status="sold")

    assert client.get(f"/vehicles/{active.slug}").status_code == 200
    assert client.get(f"/vehicles/{sold.slug}").status_code == 200
    assert client.get(f"/vehicles/{draft.slug}").status_code == 404
    assert client.get("/vehicles/unknown").json() == {"detail": "Vehicle not found"}


def test_blog_lists_published_posts(client, make_post):
    now = datetime.utcnow()
    make_post("first", published_at=now - timedelta(days=3))
    make_post("second", published_at=now - timedelta(days=1))
    make_post("draft-post", status="draft")

    body = client.get("/blog").json()
    assert [p["slug"] for p in body["posts"]] == ["second", "first"]
    assert body["pagination"]["total"] == 2

    body = client.get("/blog", params={"limit": 1, "page": 2}).json()
    assert [p["slug"] for p in body["posts"]] == ["first"]
    assert body["pagination"]["total_pages"] == 2


def test_blog_detail_links_neighbours(client, make_post):
    now = datetime.utcnow()
    make_post("first", published_at=now - timedelta(days=3))
    make_post("second", published_at=now - timedelta(days=2))
    make_post("third", published_at=now - timedelta(days=1))
    make_post("hidden", status="draft")

    body = client.get("/blog/second").json()
    assert body["post"]["slug"] == "second"
    assert body["previous"]["slug"] == "first"
    assert body["next"]["slug"] == "third"

    assert client.get("/blog/hidden").status_code == 404


def test_submit_inquiry(client, db, make_vehicle):
    vehicle = make_vehicle()

    resp = client.post("/inquiries", json={
        "name": "Max Mustermann",
        "email": "max@example.com",
        "message": "Is the car still available?",
        "vehicle_id": vehicle.id,
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["submitted"] is True
    assert body["inquiry"]["type"] == "vehicle_inquiry"
    assert body["inquiry"]["status"] == "new"
    assert body["inquiry"]["vehicle"]["slug"] == vehicle.slug

    assert db.query(Lead).count() == 1


def test_inquiry_validation(client):
    resp = client.post("/inquiries", json={"name": "M", "email": "bad", "message": "short"})
    assert resp.status_code == 422

    resp = client.post("/inquiries", json={
        "type": "contact",
        "name": "Max Mustermann",
        "email": "max@example.com",
        "message": "Please call me back tomorrow.",
        "vehicle_id": 999,
    })
    assert resp.status_code == 404
