from datetime import timedelta

from conftest import auth_headers

from app.models_booking import Booking, BookingOffer
from app.services.offer_expiry import expire_stale_offers
from app.shared.timeutils import utcnow


def _age_offers(db, booking_id, seconds):
    db.query(BookingOffer).filter(BookingOffer.booking_id == booking_id).update(
        {BookingOffer.created_at: utcnow() - timedelta(seconds=seconds)}
    )
    db.commit()


def _offer_status(db, booking_id, provider_id):
    db.expire_all()
    return (
        db.query(BookingOffer)
        .filter(BookingOffer.booking_id == booking_id, BookingOffer.provider_id == provider_id)
        .one()
        .status
    )


def test_list_offers_shape(client, db, create_booking, make_provider):
    provider = make_provider()
    older = create_booking(addressLabel="Home")
    newer = create_booking(scheduledAt="2030-05-01T08:30:00Z")

    response = client.get("/providers/offers", headers=auth_headers(provider))
    assert response.status_code == 200
    offers = response.json()
    assert [o["bookingId"] for o in offers] == [newer["id"], older["id"]]

    offer = offers[1]
    stored = db.query(BookingOffer).filter(BookingOffer.booking_id == older["id"]).one()
    assert offer["id"] == stored.id
    assert offer["latitude"] == 35.7
    assert offer["longitude"] == 51.4
    assert offer["price"] == 50.0
    assert offer["problem"] == "Car won't start"
    assert offer["address"] == "Home"
    assert offer["serviceName"] == "Battery jump start"
    assert offer["ttlMs"] == 600000
    assert offer["offeredAt"].endswith("Z")
    assert offer["scheduledAt"] is None
    assert offers[0]["scheduledAt"] == "2030-05-01T08:30:00.000Z"


def test_unapproved_provider_cannot_see_offers(client, make_provider):
    provider = make_provider(approved=False)
    response = client.get("/providers/offers", headers=auth_headers(provider))
    assert response.status_code == 403


def test_offers_past_ttl_are_hidden(client, db, create_booking, make_provider):
    provider = make_provider()
    booking = create_booking()
    _age_offers(db, booking["id"], 601)

    response = client.get("/providers/offers", headers=auth_headers(provider))
    assert response.json() == []


def test_first_accept_wins(client, db, create_booking, make_provider):
    winner = make_provider()
    loser = make_provider()
    bystander = make_provider()
    booking = create_booking()

    first = client.post(f"/providers/offers/{booking['id']}/accept", headers=auth_headers(winner))
    assert first.status_code == 200
    assert first.json()["providerId"] == winner.id

    # Bystander's offer was expired by the winning accept
    assert _offer_status(db, booking["id"], bystander.id) == "EXPIRED"
    assert _offer_status(db, booking["id"], winner.id) == "ACCEPTED"

    late = client.post(f"/providers/offers/{booking['id']}/accept", headers=auth_headers(loser))
    assert late.status_code == 404
    assert late.json()["detail"] == "Offer not found or already responded"

    db.expire_all()
    assert db.get(Booking, booking["id"]).provider_id == winner.id


def test_losing_race_returns_conflict(client, db, create_booking, make_provider):
    winner = make_provider()
    loser = make_provider()
    booking = create_booking()

    # Simulate the winner's update landing after the loser loaded its offer
    db.query(Booking).filter(Booking.id == booking["id"]).update(
        {Booking.status: "CONFIRMED", Booking.provider_id: winner.id}
    )
    db.commit()

    response = client.post(f"/providers/offers/{booking['id']}/accept", headers=auth_headers(loser))
    assert response.status_code == 409
    assert _offer_status(db, booking["id"], loser.id) == "EXPIRED"


def test_cannot_accept_expired_offer(client, db, create_booking, make_provider):
    provider = make_provider()
    booking = create_booking()
    _age_offers(db, booking["id"], 601)

    response = client.post(f"/providers/offers/{booking['id']}/accept", headers=auth_headers(provider))
    assert response.status_code == 404
    assert _offer_status(db, booking["id"], provider.id) == "EXPIRED"

    db.expire_all()
    assert db.get(Booking, booking["id"]).status == "PENDING"


def test_cannot_accept_without_offer(client, create_booking, make_provider, db, service):
    booking = create_booking()
    latecomer = make_provider()
    response = client.post(f"/providers/offers/{booking['id']}/accept", headers=auth_headers(latecomer))
    assert response.status_code == 404


def test_decline_offer(client, db, create_booking, make_provider):
    provider = make_provider()
    booking = create_booking()
    headers = auth_headers(provider)

    response = client.post(
        f"/providers/offers/{booking['id']}/decline", json={"reason": "Too far"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    db.expire_all()
    offer = db.query(BookingOffer).filter(BookingOffer.provider_id == provider.id).one()
    assert offer.status == "DECLINED"
    assert offer.decline_reason == "Too far"
    assert offer.responded_at is not None

    # Nothing outstanding any more, still ok
    again = client.post(f"/providers/offers/{booking['id']}/decline", headers=headers)
    assert again.json() == {"ok": True}

    accept = client.post(f"/providers/offers/{booking['id']}/accept", headers=headers)
    assert accept.status_code == 404


def test_expire_stale_offers_sweep(db, create_booking, make_provider):
    provider = make_provider()
    stale = create_booking()
    fresh = create_booking()
    _age_offers(db, stale["id"], 900)

    summary = expire_stale_offers(db)
    assert summary["expired"] == 1
    assert _offer_status(db, stale["id"], provider.id) == "EXPIRED"
    assert _offer_status(db, fresh["id"], provider.id) == "SENT"

    assert expire_stale_offers(db)["expired"] == 0


def test_expire_stale_offers_uses_given_clock(db, create_booking, make_provider):
    provider = make_provider()
    booking = create_booking()

    summary = expire_stale_offers(db, now=utcnow() + timedelta(minutes=11))
    assert summary["expired"] == 1
    assert _offer_status(db, booking["id"], provider.id) == "EXPIRED"
