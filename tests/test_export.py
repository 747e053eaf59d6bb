import csv
import io
from datetime import date

from dealership.models import VehicleImage
from dealership.routers.admin import AUTOSCOUT_HEADERS, MOBILE_DE_HEADERS


def _rows(resp):
    text = resp.content.decode("utf-8")
    assert text.startswith("\ufeff")
    return list(csv.reader(io.StringIO(text[1:]), delimiter=";"))


def test_export_mobile_de(client, db, staff_headers, make_vehicle):
    vehicle = make_vehicle(
        first_registration=date(2019, 3, 1),
        fuel_type="diesel",
        transmission="automatic",
        description='Top condition; "like new"\nService history',
        features=["Navigation", "Heated seats"],
    )
    db.add(VehicleImage(vehicle_id=vehicle.id, url="https://cdn.example.com/1.jpg", order=0))
    db.commit()
    make_vehicle(status="draft")

    resp = client.get("/admin/export/csv", headers=staff_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert f"st-motors-mobile-de-{date.today().isoformat()}.csv" in resp.headers["content-disposition"]

    rows = _rows(resp)
    assert rows[0] == MOBILE_DE_HEADERS
    assert len(rows) == 2

    row = dict(zip(MOBILE_DE_HEADERS, rows[1]))
    assert row["Hersteller"] == "BMW"
    assert row["Erstzulassung"] == "03.2019"
    assert row["Kraftstoff"] == "Diesel"
    assert row["Getriebe"] == "Automatik"
    assert row["Beschreibung"] == 'Top condition; "like new" Service history'
    assert row["Ausstattung"] == "Navigation, Heated seats"
    assert row["Bild1"] == "https://cdn.example.com/1.jpg"
    assert row["Bild2"] == ""


def test_export_autoscout_by_ids(client, staff_headers, make_vehicle):
    make_vehicle()
    draft = make_vehicle(status="draft", first_registration=date(2021, 11, 1), fuel_type="electric")

    resp = client.get(
        "/admin/export/csv", headers=staff_headers, params={"format": "autoscout", "ids": str(draft.id)}
    )
    assert resp.status_code == 200
    assert "st-motors-autoscout24-" in resp.headers["content-disposition"]

    rows = _rows(resp)
    assert rows[0] == AUTOSCOUT_HEADERS
    row = dict(zip(AUTOSCOUT_HEADERS, rows[1]))
    assert len(rows) == 2
    assert row["first_registration_year"] == "2021"
    assert row["first_registration_month"] == "11"
    assert row["fuel_type"] == "Electric"


def test_export_errors(client, staff_headers, make_vehicle):
    make_vehicle(status="sold")

    assert client.get("/admin/export/csv", headers=staff_headers).status_code == 404
    assert client.get("/admin/export/csv", headers=staff_headers, params={"ids": "a,b"}).status_code == 400
    assert client.get("/admin/export/csv", headers=staff_headers, params={"format": "xls"}).status_code == 422


def test_export_requires_session(client):
    resp = client.get("/admin/export/csv", follow_redirects=False)
    assert resp.status_code == 307


def test_export_keeps_full_price(client, staff_headers, make_vehicle):
    make_vehicle(selling_price=12499.99)
    make_vehicle(selling_price=1250000.0)

    rows = _rows(client.get("/admin/export/csv", headers=staff_headers))
    assert [dict(zip(MOBILE_DE_HEADERS, row))["Preis"] for row in rows[1:]] == ["12499.99", "1250000"]

    rows = _rows(client.get("/admin/export/csv", headers=staff_headers, params={"format": "autoscout"}))
    assert [dict(zip(AUTOSCOUT_HEADERS, row))["price"] for row in rows[1:]] == ["12499.99", "1250000"]
