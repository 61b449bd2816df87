from conftest import auth_headers

from app.models import UserRole, Vehicle
from app.models_booking import BookingOffer, BookingStatusHistory


def _offers(db, booking_id):
    db.expire_all()
    return {
        o.provider_id: o.status
        for o in db.query(BookingOffer).filter(BookingOffer.booking_id == booking_id).all()
    }


def test_create_booking_defaults(create_booking, service, customer):
    booking = create_booking(addressLabel="Valiasr St.")
    assert booking["status"] == "PENDING"
    assert booking["jobType"] == "ON_DEMAND"
    assert booking["price"] == service.base_price
    assert booking["providerId"] is None
    assert booking["customerId"] == customer.id
    assert booking["addressLabel"] == "Valiasr St."
    assert booking["service"]["name"] == "Battery jump start"
    assert booking["vehicle"]["licensePlate"] == "12 B 345"
    assert booking["statusHistory"][0]["toStatus"] == "PENDING"
    assert booking["statusHistory"][0]["fromStatus"] is None


def test_scheduled_booking_is_scheduled_job(create_booking):
    booking = create_booking(scheduledAt="2030-01-02T10:00:00Z")
    assert booking["jobType"] == "SCHEDULED"
    assert booking["scheduledAt"].startswith("2030-01-02T10:00:00")


def test_offers_go_only_to_eligible_providers(db, create_booking, make_provider, make_user):
    near = make_provider(lat=35.71, lng=51.41)
    no_location = make_provider()
    far = make_provider(lat=36.5, lng=51.4)
    busy = make_provider(lat=35.7, lng=51.4, available=False)
    unapproved = make_provider(approved=False)
    other_trade = make_user(UserRole.PROVIDER.value)

    booking = create_booking()
    offers = _offers(db, booking["id"])

    assert set(offers) == {near.id, no_location.id}
    assert set(offers.values()) == {"SENT"}
    for excluded in (far, busy, unapproved, other_trade):
        assert excluded.id not in offers


def test_create_booking_validation(client, customer, vehicle, service):
    headers = auth_headers(customer)
    base = {"serviceId": service.id, "vehicleId": vehicle.id, "lat": 35.7, "lng": 51.4}

    assert client.post("/bookings", json={**base, "lat": 91}, headers=headers).status_code == 422
    assert client.post("/bookings", json={**base, "lng": -181}, headers=headers).status_code == 422
    assert (
        client.post("/bookings", json={**base, "description": "x" * 1001}, headers=headers).status_code
        == 422
    )
    assert (
        client.post("/bookings", json={**base, "addressLabel": "x" * 201}, headers=headers).status_code
        == 422
    )
    assert client.post("/bookings", json={**base, "serviceId": 999}, headers=headers).status_code == 404


def test_cannot_book_with_someone_elses_vehicle(client, db, make_user, service):
    owner = make_user()
    stranger = make_user()
    car = Vehicle(user_id=owner.id, make="Kia", model="Rio", year=2015, license_plate="AB1")
    db.add(car)
    db.commit()

    response = client.post(
        "/bookings",
        json={"serviceId": service.id, "vehicleId": car.id, "lat": 1, "lng": 1},
        headers=auth_headers(stranger),
    )
    assert response.status_code == 404


def test_full_lifecycle_writes_history(client, db, create_booking, make_provider):
    provider = make_provider()
    booking = create_booking()
    headers = auth_headers(provider)

    accepted = client.post(f"/providers/offers/{booking['id']}/accept", headers=headers)
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "CONFIRMED"
    assert accepted.json()["providerId"] == provider.id
    assert accepted.json()["provider"]["fullName"] == "Reza Mechanic"

    started = client.post(f"/bookings/{booking['id']}/start", headers=headers)
    assert started.json()["status"] == "IN_PROGRESS"

    completed = client.post(f"/bookings/{booking['id']}/complete", headers=headers)
    assert completed.json()["status"] == "COMPLETED"

    history = [(h["fromStatus"], h["toStatus"]) for h in completed.json()["statusHistory"]]
    assert history == [
        (None, "PENDING"),
        ("PENDING", "CONFIRMED"),
        ("CONFIRMED", "IN_PROGRESS"),
        ("IN_PROGRESS", "COMPLETED"),
    ]


def test_wrong_status_transitions_are_noops(client, db, create_booking, make_provider):
    provider = make_provider()
    booking = create_booking()
    headers = auth_headers(provider)
    client.post(f"/providers/offers/{booking['id']}/accept", headers=headers)

    # Complete before start leaves the booking confirmed
    response = client.post(f"/bookings/{booking['id']}/complete", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"

    db.expire_all()
    rows = db.query(BookingStatusHistory).filter(BookingStatusHistory.booking_id == booking["id"]).count()
    assert rows == 2


def test_only_assigned_provider_can_start(client, create_booking, make_provider):
    assigned = make_provider()
    other = make_provider()
    booking = create_booking()
    client.post(f"/providers/offers/{booking['id']}/accept", headers=auth_headers(assigned))

    response = client.post(f"/bookings/{booking['id']}/start", headers=auth_headers(other))
    assert response.status_code == 404
    assert response.json()["detail"] == "Booking not found"


def test_cancel_expires_outstanding_offers(client, db, create_booking, make_provider, customer):
    first = make_provider()
    second = make_provider()
    booking = create_booking()

    response = client.post(f"/bookings/{booking['id']}/cancel", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert _offers(db, booking["id"]) == {first.id: "EXPIRED", second.id: "EXPIRED"}

    again = client.post(f"/bookings/{booking['id']}/cancel", headers=auth_headers(customer))
    assert again.json()["status"] == "CANCELLED"
    assert len(again.json()["statusHistory"]) == 2


def test_cancel_in_progress_and_completed_is_terminal(client, create_booking, make_provider, customer):
    provider = make_provider()
    headers = auth_headers(provider)

    active = create_booking()
    client.post(f"/providers/offers/{active['id']}/accept", headers=headers)
    client.post(f"/bookings/{active['id']}/start", headers=headers)
    cancelled = client.post(f"/bookings/{active['id']}/cancel", headers=auth_headers(customer))
    assert cancelled.json()["status"] == "CANCELLED"

    done = create_booking()
    client.post(f"/providers/offers/{done['id']}/accept", headers=headers)
    client.post(f"/bookings/{done['id']}/start", headers=headers)
    client.post(f"/bookings/{done['id']}/complete", headers=headers)
    untouched = client.post(f"/bookings/{done['id']}/cancel", headers=auth_headers(customer))
    assert untouched.json()["status"] == "COMPLETED"


def test_only_owner_can_cancel(client, create_booking, make_user):
    booking = create_booking()
    stranger = make_user()
    response = client.post(f"/bookings/{booking['id']}/cancel", headers=auth_headers(stranger))
    assert response.status_code == 404


def test_booking_visibility(client, create_booking, make_provider, make_user, customer):
    offered = make_provider()
    booking = create_booking()
    stranger = make_user()
    outsider_provider = make_user(UserRole.PROVIDER.value)
    admin = make_user(UserRole.ADMIN.value)

    path = f"/bookings/{booking['id']}"
    assert client.get(path, headers=auth_headers(customer)).status_code == 200
    assert client.get(path, headers=auth_headers(offered)).status_code == 200
    assert client.get(path, headers=auth_headers(admin)).status_code == 200
    assert client.get(path, headers=auth_headers(stranger)).status_code == 404
    assert client.get(path, headers=auth_headers(outsider_provider)).status_code == 404
    assert client.get("/bookings/9999", headers=auth_headers(admin)).status_code == 404


def test_rating_rules(client, create_booking, make_provider, customer):
    provider = make_provider()
    headers = auth_headers(provider)
    booking = create_booking()
    path = f"/bookings/{booking['id']}/rating"

    early = client.post(path, json={"score": 5}, headers=auth_headers(customer))
    assert early.status_code == 400

    client.post(f"/providers/offers/{booking['id']}/accept", headers=headers)
    client.post(f"/bookings/{booking['id']}/start", headers=headers)
    client.post(f"/bookings/{booking['id']}/complete", headers=headers)

    assert client.post(path, json={"score": 6}, headers=auth_headers(customer)).status_code == 422

    rated = client.post(path, json={"score": 4, "comment": "Quick"}, headers=auth_headers(customer))
    assert rated.status_code == 201
    assert rated.json()["rating"]["score"] == 4

    twice = client.post(path, json={"score": 5}, headers=auth_headers(customer))
    assert twice.status_code == 409
