from datetime import date

from conftest import auth_headers

from app.models import Region
from app.models_booking import Booking

SQUARE = {
    "type": "Polygon",
    "coordinates": [[[51.0, 35.0], [52.0, 35.0], [52.0, 36.0], [51.0, 36.0], [51.0, 35.0]]],
}


def test_vehicle_crud(client, customer):
    headers = auth_headers(customer)
    created = client.post(
        "/customers/vehicles",
        json={"make": "Peugeot", "model": "206", "year": 2010, "licensePlate": " 22  m 333 "},
        headers=headers,
    )
    assert created.status_code == 201
    vehicle = created.json()
    assert vehicle["licensePlate"] == "22 M 333"

    updated = client.patch(f"/customers/vehicles/{vehicle['id']}", json={"year": 2011}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["year"] == 2011
    assert updated.json()["make"] == "Peugeot"

    assert len(client.get("/customers/vehicles", headers=headers).json()) == 1

    deleted = client.delete(f"/customers/vehicles/{vehicle['id']}", headers=headers)
    assert deleted.json() == {"ok": True}
    assert client.get("/customers/vehicles", headers=headers).json() == []


def test_vehicle_validation(client, customer):
    headers = auth_headers(customer)
    base = {"make": "Peugeot", "model": "206", "year": 2010, "licensePlate": "X1"}

    assert client.post("/customers/vehicles", json={**base, "year": 1949}, headers=headers).status_code == 422
    next_year = date.today().year + 1
    assert client.post("/customers/vehicles", json={**base, "year": next_year}, headers=headers).status_code == 201
    assert (
        client.post("/customers/vehicles", json={**base, "year": next_year + 1}, headers=headers).status_code
        == 422
    )
    assert client.post("/customers/vehicles", json={**base, "make": ""}, headers=headers).status_code == 422
    assert (
        client.post("/customers/vehicles", json={**base, "licensePlate": "X" * 33}, headers=headers).status_code
        == 422
    )


def test_vehicle_update_needs_a_field(client, vehicle, customer):
    response = client.patch(f"/customers/vehicles/{vehicle.id}", json={}, headers=auth_headers(customer))
    assert response.status_code == 422


def test_validator_errors_are_reported_as_json(client, customer):
    response = client.post(
        "/customers/vehicles",
        json={"make": "Peugeot", "model": "206", "year": 2010, "licensePlate": "   "},
        headers=auth_headers(customer),
    )

    assert response.status_code == 422
    errors = response.json()["detail"]
    assert errors[0]["loc"][-1] == "licensePlate"
    assert "License plate is required" in errors[0]["msg"]


def test_foreign_vehicle_is_forbidden(client, vehicle, make_user):
    stranger = make_user()
    headers = auth_headers(stranger)
    assert client.patch(f"/customers/vehicles/{vehicle.id}", json={"year": 2019}, headers=headers).status_code == 403
    assert client.delete(f"/customers/vehicles/{vehicle.id}", headers=headers).status_code == 403
    assert client.delete("/customers/vehicles/9999", headers=headers).status_code == 404


def test_vehicle_with_bookings_cannot_be_deleted(client, create_booking, vehicle, customer):
    create_booking()
    response = client.delete(f"/customers/vehicles/{vehicle.id}", headers=auth_headers(customer))
    assert response.status_code == 409


def test_places_crud_and_ownership(client, customer, make_user):
    headers = auth_headers(customer)
    created = client.post(
        "/customers/places", json={"label": "Work", "lat": 35.75, "lng": 51.41}, headers=headers
    )
    assert created.status_code == 201
    place = created.json()
    assert place["address"] == ""

    updated = client.patch(
        f"/customers/places/{place['id']}", json={"address": "Tower 3"}, headers=headers
    )
    assert updated.json()["address"] == "Tower 3"
    assert updated.json()["label"] == "Work"

    stranger = auth_headers(make_user())
    assert client.patch(f"/customers/places/{place['id']}", json={"label": "Mine"}, headers=stranger).status_code == 403
    assert client.delete(f"/customers/places/{place['id']}", headers=stranger).status_code == 403

    assert client.post("/customers/places", json={"label": "", "lat": 0, "lng": 0}, headers=headers).status_code == 422
    assert client.post("/customers/places", json={"label": "Sea", "lat": 95, "lng": 0}, headers=headers).status_code == 422

    assert client.delete(f"/customers/places/{place['id']}", headers=headers).json() == {"ok": True}
    assert client.get("/customers/places", headers=headers).json() == []


def test_list_bookings_newest_first(client, create_booking, customer):
    first = create_booking()
    second = create_booking()
    response = client.get("/customers/bookings", headers=auth_headers(customer))
    assert [b["id"] for b in response.json()] == [second["id"], first["id"]]
    assert response.json()[0]["vehicle"]["make"] == "Toyota"


def test_regions_listed_by_name(client, db, customer):
    db.add_all([Region(name="Tehran", polygon=SQUARE), Region(name="Karaj", polygon=SQUARE)])
    db.commit()
    response = client.get("/customers/regions", headers=auth_headers(customer))
    assert [r["name"] for r in response.json()] == ["Karaj", "Tehran"]


def test_booking_counts_default_window(client, db, create_booking, customer, make_provider):
    make_provider()
    create_booking()
    cancelled = create_booking()
    client.post(f"/bookings/{cancelled['id']}/cancel", headers=auth_headers(customer))
    # Scheduled far in the future falls outside the default window
    create_booking(scheduledAt="2099-01-01T00:00:00Z")

    response = client.get("/customers/bookings/counts", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json() == {
        "PENDING": 1,
        "CONFIRMED": 0,
        "IN_PROGRESS": 0,
        "COMPLETED": 0,
        "CANCELLED": 1,
    }


def test_booking_counts_window_uses_scheduled_date(client, create_booking, customer):
    create_booking(scheduledAt="2030-03-10T09:00:00Z")
    create_booking(scheduledAt="2030-03-20T09:00:00Z")
    headers = auth_headers(customer)

    response = client.get(
        "/customers/bookings/counts",
        params={"from": "2030-03-01T00:00:00Z", "to": "2030-03-20T09:00:00Z"},
        headers=headers,
    )
    # Upper bound is exclusive
    assert response.json()["PENDING"] == 1

    invalid = client.get(
        "/customers/bookings/counts",
        params={"from": "2030-04-01T00:00:00Z", "to": "2030-03-01T00:00:00Z"},
        headers=headers,
    )
    assert invalid.status_code == 400


def test_booking_counts_in_region(client, db, create_booking, customer):
    region = Region(name="Tehran", polygon=SQUARE)
    db.add(region)
    db.commit()

    create_booking(lat=35.7, lng=51.4)
    create_booking(lat=38.0, lng=46.3)

    headers = auth_headers(customer)
    inside = client.get("/customers/bookings/counts", params={"regionId": region.id}, headers=headers)
    assert inside.json()["PENDING"] == 1

    everywhere = client.get("/customers/bookings/counts", headers=headers)
    assert everywhere.json()["PENDING"] == 2

    unknown = client.get("/customers/bookings/counts", params={"regionId": 999}, headers=headers)
    assert unknown.status_code == 200
    assert unknown.json() == {
        "PENDING": 0,
        "CONFIRMED": 0,
        "IN_PROGRESS": 0,
        "COMPLETED": 0,
        "CANCELLED": 0,
    }


def test_counts_only_include_own_bookings(client, db, create_booking, make_user):
    create_booking()
    other = make_user()
    response = client.get("/customers/bookings/counts", headers=auth_headers(other))
    assert sum(response.json().values()) == 0
    assert db.query(Booking).count() == 1
