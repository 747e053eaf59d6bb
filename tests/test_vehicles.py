from dealership.models import Vehicle, VehicleImage
from dealership.utils import slugify

NEW_VEHICLE = {
    "manufacturer": "Mercedes-Benz",
    "model": "C 220 d",
    "selling_price": 31990,
    "mileage": 42000,
    "fuel_type": "diesel",
    "transmission": "automatic",
    "images": [{"url": "https://cdn.example.com/1.jpg"}, {"url": "https://cdn.example.com/2.jpg"}],
}


def test_slugify():
    assert slugify("Škoda Octavia") == "koda-octavia"
    assert slugify("Größe über Maß") == "groesse-ueber-mass"
    assert slugify("  BMW -- 320d  ") == "bmw-320d"


def test_create_vehicle(client, staff_headers, staff_user):
    resp = client.post("/admin/vehicles", headers=staff_headers, json=NEW_VEHICLE)
    assert resp.status_code == 201

    body = resp.json()
    assert body["vehicle_number"] == 1
    assert body["slug"] == "mercedes-benz-c-220-d-1"
    assert body["status"] == "draft"
    assert body["created_by_id"] == staff_user.id
    assert [image["order"] for image in body["images"]] == [0, 1]

    resp = client.post("/admin/vehicles", headers=staff_headers, json=NEW_VEHICLE)
    assert resp.json()["vehicle_number"] == 2


def test_create_vehicle_validation(client, staff_headers):
    resp = client.post("/admin/vehicles", headers=staff_headers, json={"manufacturer": "BMW"})
    assert resp.status_code == 422

    resp = client.post(
        "/admin/vehicles", headers=staff_headers, json={**NEW_VEHICLE, "fuel_type": "steam"}
    )
    assert resp.status_code == 422


def test_list_vehicles_filters(client, staff_headers, make_vehicle):
    make_vehicle(status="active")
    make_vehicle(status="draft", model="X5", slug="bmw-x5-2")

    body = client.get("/admin/vehicles", headers=staff_headers).json()
    assert body["pagination"]["total"] == 2

    body = client.get("/admin/vehicles", headers=staff_headers, params={"status": "draft"}).json()
    assert [v["model"] for v in body["vehicles"]] == ["X5"]

    body = client.get("/admin/vehicles", headers=staff_headers, params={"search": "x5"}).json()
    assert body["pagination"]["total"] == 1


def test_update_vehicle_replaces_images(client, db, staff_headers):
    vehicle_id = client.post("/admin/vehicles", headers=staff_headers, json=NEW_VEHICLE).json()["id"]

    resp = client.patch(
        f"/admin/vehicles/{vehicle_id}",
        headers=staff_headers,
        json={"selling_price": 29990, "images": [{"url": "https://cdn.example.com/new.jpg"}]},
    )
    assert resp.status_code == 200
    assert resp.json()["selling_price"] == 29990
    assert [image["url"] for image in resp.json()["images"]] == ["https://cdn.example.com/new.jpg"]
    assert db.query(VehicleImage).count() == 1


def test_update_vehicle_status(client, staff_headers, make_vehicle):
    vehicle = make_vehicle(status="draft")

    resp = client.patch(f"/admin/vehicles/{vehicle.id}/status", headers=staff_headers, json={"status": "active"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "active"

    resp = client.patch(f"/admin/vehicles/{vehicle.id}/status", headers=staff_headers, json={"status": "gone"})
    assert resp.status_code == 422


def test_vehicle_not_found(client, staff_headers):
    resp = client.get("/admin/vehicles/999", headers=staff_headers)
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Vehicle not found"}


def test_delete_vehicle_requires_admin(client, db, staff_headers, admin_headers, make_vehicle):
    vehicle = make_vehicle()

    resp = client.delete(f"/admin/vehicles/{vehicle.id}", headers=staff_headers)
    assert resp.status_code == 403

    resp = client.delete(f"/admin/vehicles/{vehicle.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert db.query(Vehicle).count() == 0


def test_vehicle_stats(client, staff_headers, make_vehicle):
    make_vehicle(status="active", selling_price=10000.0)
    make_vehicle(status="active", selling_price=15000.0)
    make_vehicle(status="sold")

    stats = client.get("/admin/vehicles/stats", headers=staff_headers).json()
    assert stats["total"] == 3
    assert stats["active"] == 2
    assert stats["sold"] == 1
    assert stats["reserved"] == 0
    assert stats["total_value"] == 25000.0
