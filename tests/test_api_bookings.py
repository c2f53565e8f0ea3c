import os
from datetime import date, timedelta

from sqlalchemy import select

from travelbook.core.config import settings
from travelbook.core.errors import InvalidState
from travelbook.models.booking import Booking, BookingStatus
from travelbook.services import booking_service

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _body(**overrides):
    body = {
        "nama_pemesan": "Budi Santoso",
        "nomor_hp": "081234567890",
        "tanggal_keberangkatan": (date.today() + timedelta(days=30)).isoformat(),
        "participants": 2,
    }
    body.update(overrides)
    return body


def _book(client, headers, trip):
    r = client.post(f"/api/v1/bookings/trip/{trip.id}", json=_body(), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def _upload(client, headers, booking_id, content=PNG, content_type="image/png", bank="BCA"):
    return client.post(
        f"/api/v1/bookings/{booking_id}/payment-proof",
        files={"payment_proof": ("proof.png", content, content_type)},
        data={"bank_name": bank},
        headers=headers,
    )


def _stored_proofs():
    return set(os.listdir(settings.PAYMENT_PROOF_DIR)) if os.path.isdir(settings.PAYMENT_PROOF_DIR) else set()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_booking_contract(client, customer, trip, auth_headers):
    r = client.post(f"/api/v1/bookings/trip/{trip.id}", json=_body(), headers=auth_headers(customer))

    assert r.status_code == 201
    data = r.json()["data"]
    assert data["status"] == "menunggu_pembayaran"
    assert data["total_price"] == 2000000.0
    assert data["booking_code"].startswith("TRP-")
    assert data["catalog"]["title"] == "Open Trip Bromo"
    assert data["expired_at"]


def test_create_travel_booking_uses_passengers(client, customer, travel, auth_headers):
    r = client.post(f"/api/v1/bookings/travel/{travel.id}", json=_body(participants=None, passengers=3),
                    headers=auth_headers(customer))
    assert r.status_code == 201
    assert r.json()["data"]["total_price"] == 450000.0


def test_create_requires_login(client, trip):
    r = client.post(f"/api/v1/bookings/trip/{trip.id}", json=_body())
    assert r.status_code == 401


def test_create_without_participants_is_422(client, customer, trip, auth_headers):
    r = client.post(f"/api/v1/bookings/trip/{trip.id}", json=_body(participants=None),
                    headers=auth_headers(customer))
    assert r.status_code == 422


def test_create_with_past_departure_is_422(client, customer, trip, auth_headers):
    r = client.post(f"/api/v1/bookings/trip/{trip.id}",
                    json=_body(tanggal_keberangkatan=date.today().isoformat()),
                    headers=auth_headers(customer))
    assert r.status_code == 422
    assert r.json()["error"] == "ValidationError"
    assert r.json()["field"] == "tanggal_keberangkatan"


def test_create_on_full_trip_is_400(client, db, customer, trip, auth_headers):
    trip.quota = 0
    db.commit()
    r = client.post(f"/api/v1/bookings/trip/{trip.id}", json=_body(), headers=auth_headers(customer))
    assert r.status_code == 400
    assert r.json()["error"] == "QuotaExceeded"


def test_create_on_unknown_trip_is_400(client, customer, auth_headers):
    r = client.post("/api/v1/bookings/trip/nope", json=_body(), headers=auth_headers(customer))
    assert r.status_code == 400
    assert r.json()["error"] == "CatalogNotFound"


def test_my_bookings_and_detail(client, customer, other_customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)

    r = client.get("/api/v1/bookings", headers=auth_headers(customer))
    assert [b["id"] for b in r.json()["data"]] == [created["booking_id"]]

    r = client.get(f"/api/v1/bookings/{created['booking_id']}", headers=auth_headers(customer))
    assert r.status_code == 200
    assert r.json()["data"]["booking_data"]["jumlah_orang"] == 2

    r = client.get(f"/api/v1/bookings/{created['booking_id']}", headers=auth_headers(other_customer))
    assert r.status_code == 404
    assert client.get("/api/v1/bookings", headers=auth_headers(other_customer)).json()["data"] == []


def test_upload_payment_proof(client, db, customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)

    r = _upload(client, auth_headers(customer), created["booking_id"])

    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["booking"]["status"] == "menunggu_validasi"
    assert data["payment_proof"]["bank_name"] == "BCA"
    with open(data["payment_proof"]["image_url"], "rb") as f:
        assert f.read() == PNG


def test_second_upload_is_400(client, customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)
    assert _upload(client, auth_headers(customer), created["booking_id"]).status_code == 200

    r = _upload(client, auth_headers(customer), created["booking_id"])

    assert r.status_code == 400
    assert "menunggu pembayaran" in r.json()["message"]


def test_upload_after_expiry_is_400(client, db, customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)
    b = db.get(Booking, created["booking_id"])
    b.expired_at = b.expired_at - timedelta(days=2)
    db.commit()
    before = _stored_proofs()

    r = _upload(client, auth_headers(customer), created["booking_id"])

    assert r.status_code == 400
    assert "menunggu pembayaran" in r.json()["message"]
    assert _stored_proofs() == before
    db.expire_all()
    assert db.scalar(select(Booking.status).where(Booking.id == created["booking_id"])) == BookingStatus.EXPIRED


def test_upload_by_other_user_is_404(client, customer, other_customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)
    r = _upload(client, auth_headers(other_customer), created["booking_id"])
    assert r.status_code == 404


def test_upload_rejects_non_image(client, customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)
    r = _upload(client, auth_headers(customer), created["booking_id"], content=b"%PDF-1.4", content_type="application/pdf")
    assert r.status_code == 422


def test_upload_rejects_unknown_bank(client, customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)
    r = _upload(client, auth_headers(customer), created["booking_id"], bank="Bank Antah")
    assert r.status_code == 422
    assert r.json()["field"] == "bank_name"


def test_failed_upload_removes_stored_image(client, monkeypatch, customer, trip, auth_headers):
    created = _book(client, auth_headers(customer), trip)
    before = _stored_proofs()

    def lost_race(*args, **kwargs):
        raise InvalidState(booking_service.MSG_EXPECT_PEMBAYARAN)

    monkeypatch.setattr(booking_service, "upload_payment_proof", lost_race)
    r = _upload(client, auth_headers(customer), created["booking_id"])

    assert r.status_code == 400
    assert _stored_proofs() == before
