from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from travelbook.core.errors import (
    BookingValidationError,
    CatalogNotFound,
    Forbidden,
    InvalidState,
    NotFound,
    QuotaExceeded,
)
from travelbook.models.audit_log import AuditLog
from travelbook.models.booking import Booking, BookingStatus
from travelbook.models.notification import Notification
from travelbook.models.payment_proof import PaymentProof
from travelbook.services import booking_service as svc


def _pending(db, user, trip, now, make_booking_data, participants=2):
    booking, _ = svc.create_booking(db, user, "trip", trip.id, make_booking_data(participants), now=now)
    return booking


def _awaiting_validation(db, user, trip, now, make_booking_data):
    b = _pending(db, user, trip, now, make_booking_data)
    b, _ = svc.upload_payment_proof(db, user, b.id, "proofs/a.jpg", "BCA", now=now + timedelta(hours=1))
    return b


# -------------------------
# create_booking
# -------------------------
def test_create_trip_booking_prices_per_participant(db, user, admin, trip, now, make_booking_data):
    booking, catalog = svc.create_booking(db, user, "trip", trip.id, make_booking_data(2), now=now)

    assert booking.total_price == Decimal("2000000.00")
    assert booking.status == BookingStatus.MENUNGGU_PEMBAYARAN
    assert svc.as_utc(booking.expired_at) == now + timedelta(hours=24)
    assert booking.user_id == user.id
    assert booking.booking_code.startswith("TRP-")
    assert booking.booking_data["jumlah_orang"] == 2
    assert booking.booking_data["nama_pemesan"] == "Budi Santoso"
    assert catalog.name == "Open Trip Bromo"


def test_create_travel_booking(db, user, travel, now, make_booking_data):
    booking, catalog = svc.create_booking(db, user, "travel", travel.id, make_booking_data(3), now=now)
    assert booking.total_price == Decimal("450000.00")
    assert booking.booking_code.startswith("TRV-")
    assert catalog.details["origin"] == "Malang"


def test_create_notifies_admins_and_audits(db, user, admin, trip, now, make_booking_data):
    booking = _pending(db, user, trip, now, make_booking_data)

    notes = db.scalars(select(Notification)).all()
    assert len(notes) == 1
    assert notes[0].type == "booking_created"
    assert notes[0].user_id == admin.id
    assert notes[0].data["booking_id"] == booking.id
    assert "Rp 2.000.000" in notes[0].message

    audit = db.scalars(select(AuditLog).where(AuditLog.entity_id == booking.id)).all()
    assert [a.action for a in audit] == ["booking.create"]


def test_create_without_admins_broadcasts(db, user, trip, now, make_booking_data):
    _pending(db, user, trip, now, make_booking_data)
    note = db.scalars(select(Notification)).one()
    assert note.user_id is None


def test_create_unknown_catalog(db, user, now, make_booking_data):
    with pytest.raises(CatalogNotFound):
        svc.create_booking(db, user, "trip", "missing", make_booking_data(), now=now)


def test_create_inactive_catalog(db, user, trip, now, make_booking_data):
    trip.is_active = False
    db.commit()
    with pytest.raises(CatalogNotFound, match="tidak aktif"):
        svc.create_booking(db, user, "trip", trip.id, make_booking_data(), now=now)


def test_create_unknown_catalog_type(db, user, trip, now, make_booking_data):
    with pytest.raises(CatalogNotFound):
        svc.create_booking(db, user, "cruise", trip.id, make_booking_data(), now=now)


def test_create_trip_with_full_quota(db, user, trip, now, make_booking_data):
    trip.quota = 0
    db.commit()
    with pytest.raises(QuotaExceeded):
        svc.create_booking(db, user, "trip", trip.id, make_booking_data(), now=now)
    assert db.scalars(select(Booking)).all() == []


def test_create_trip_more_participants_than_quota(db, user, trip, now, make_booking_data):
    with pytest.raises(QuotaExceeded):
        svc.create_booking(db, user, "trip", trip.id, make_booking_data(11), now=now)


def test_create_travel_over_capacity(db, user, travel, now, make_booking_data):
    with pytest.raises(BookingValidationError, match="1-8"):
        svc.create_booking(db, user, "travel", travel.id, make_booking_data(9), now=now)


def test_create_requires_future_departure(db, user, trip, now, make_booking_data):
    with pytest.raises(BookingValidationError) as exc:
        svc.create_booking(db, user, "trip", trip.id, make_booking_data(departure=now.date()), now=now)
    assert exc.value.field == "tanggal_keberangkatan"
    assert exc.value.status_code == 422


def test_create_with_raw_dict_validates(db, user, trip, now):
    with pytest.raises(BookingValidationError):
        svc.create_booking(db, user, "trip", trip.id, {"nama_pemesan": "Budi", "participant_count": 0}, now=now)


def test_total_price_is_fixed_at_creation(db, user, trip, now, make_booking_data):
    booking = _pending(db, user, trip, now, make_booking_data)
    trip.price = Decimal("5000000")
    db.commit()
    b, _ = svc.upload_payment_proof(db, user, booking.id, "proofs/a.jpg", now=now)
    assert b.total_price == Decimal("2000000.00")


# -------------------------
# upload_payment_proof
# -------------------------
def test_upload_moves_to_validation(db, user, admin, trip, now, make_booking_data):
    booking = _pending(db, user, trip, now, make_booking_data)
    b, proof = svc.upload_payment_proof(db, user, booking.id, "proofs/a.jpg", "Mandiri", now=now + timedelta(hours=2))

    assert b.status == BookingStatus.MENUNGGU_VALIDASI
    assert proof.booking_id == b.id
    assert proof.bank_name == "Mandiri"
    types = [n.type for n in db.scalars(select(Notification).order_by(Notification.created_at))]
    assert "payment_proof_uploaded" in types


def test_second_upload_fails_with_invalid_state(db, user, trip, now, make_booking_data):
    booking = _pending(db, user, trip, now, make_booking_data)
    svc.upload_payment_proof(db, user, booking.id, "proofs/a.jpg", now=now)
    with pytest.raises(InvalidState, match="menunggu pembayaran"):
        svc.upload_payment_proof(db, user, booking.id, "proofs/b.jpg", now=now)
    assert len(db.scalars(select(PaymentProof)).all()) == 1


def test_upload_by_other_user_is_not_found(db, user, other_user, trip, now, make_booking_data):
    booking = _pending(db, user, trip, now, make_booking_data)
    with pytest.raises(NotFound):
        svc.upload_payment_proof(db, other_user, booking.id, "proofs/a.jpg", now=now)
    db.refresh(booking)
    assert booking.status == BookingStatus.MENUNGGU_PEMBAYARAN


def test_upload_unknown_booking(db, user, now):
    with pytest.raises(NotFound):
        svc.upload_payment_proof(db, user, "missing", "proofs/a.jpg", now=now)


def test_upload_rejects_unknown_bank(db, user, trip, now, make_booking_data):
    booking = _pending(db, user, trip, now, make_booking_data)
    with pytest.raises(BookingValidationError):
        svc.upload_payment_proof(db, user, booking.id, "proofs/a.jpg", "Bank Antah", now=now)


def test_upload_after_expiry_marks_expired(db, user, trip, now, make_booking_data):
    booking = _pending(db, user, trip, now, make_booking_data)
    with pytest.raises(InvalidState, match="menunggu pembayaran"):
        svc.upload_payment_proof(db, user, booking.id, "proofs/a.jpg", now=now + timedelta(hours=24))
    db.refresh(booking)
    assert booking.status == BookingStatus.EXPIRED
    assert db.scalars(select(PaymentProof)).all() == []


# -------------------------
# approve / reject
# -------------------------
def test_approve_from_validation(db, user, admin, trip, now, make_booking_data):
    b = _awaiting_validation(db, user, trip, now, make_booking_data)
    b = svc.approve_booking(db, admin, b.id, now=now + timedelta(hours=3))
    assert b.status == BookingStatus.LUNAS

    note = db.scalars(select(Notification).where(Notification.type == "payment_approved")).one()
    assert note.user_id == user.id


def test_approve_from_pending_payment_fails(db, user, admin, trip, now, make_booking_data):
    b = _pending(db, user, trip, now, make_booking_data)
    with pytest.raises(InvalidState, match="menunggu validasi"):
        svc.approve_booking(db, admin, b.id, now=now)
    db.refresh(b)
    assert b.status == BookingStatus.MENUNGGU_PEMBAYARAN


def test_approve_requires_admin(db, user, trip, now, make_booking_data):
    b = _awaiting_validation(db, user, trip, now, make_booking_data)
    with pytest.raises(Forbidden):
        svc.approve_booking(db, user, b.id, now=now)


def test_approve_unknown_booking(db, admin):
    with pytest.raises(NotFound):
        svc.approve_booking(db, admin, "missing")


def test_reject_stores_reason(db, user, admin, trip, now, make_booking_data):
    b = _awaiting_validation(db, user, trip, now, make_booking_data)
    b = svc.reject_booking(db, admin, b.id, "Nominal transfer tidak sesuai", now=now)
    assert b.status == BookingStatus.DITOLAK
    assert b.rejection_reason == "Nominal transfer tidak sesuai"

    note = db.scalars(select(Notification).where(Notification.type == "payment_rejected")).one()
    assert "Nominal transfer tidak sesuai" in note.message


def test_reject_without_reason(db, user, admin, trip, now, make_booking_data):
    b = _awaiting_validation(db, user, trip, now, make_booking_data)
    b = svc.reject_booking(db, admin, b.id, "  ", now=now)
    assert b.status == BookingStatus.DITOLAK
    assert b.rejection_reason is None


def test_terminal_states_never_change(db, user, admin, trip, now, make_booking_data):
    b = _awaiting_validation(db, user, trip, now, make_booking_data)
    svc.approve_booking(db, admin, b.id, now=now)

    with pytest.raises(InvalidState):
        svc.reject_booking(db, admin, b.id, now=now)
    with pytest.raises(InvalidState):
        svc.approve_booking(db, admin, b.id, now=now)
    with pytest.raises(InvalidState):
        svc.upload_payment_proof(db, user, b.id, "proofs/c.jpg", now=now)
    result = svc.sweep_expired_bookings(db, now=now + timedelta(days=3))
    assert result.expired == []

    db.refresh(b)
    assert b.status == BookingStatus.LUNAS


def test_guarded_transition_lets_only_one_writer_win(db, user, trip, now, make_booking_data):
    b = _awaiting_validation(db, user, trip, now, make_booking_data)
    assert svc._guarded_transition(db, b.id, BookingStatus.LUNAS) is True
    assert svc._guarded_transition(db, b.id, BookingStatus.DITOLAK) is False
    db.commit()
    db.refresh(b)
    assert b.status == BookingStatus.LUNAS


# -------------------------
# reads
# -------------------------
def test_get_booking_hides_other_users_bookings(db, user, other_user, admin, trip, now, make_booking_data):
    b = _pending(db, user, trip, now, make_booking_data)
    assert svc.get_booking(db, user, b.id).id == b.id
    assert svc.get_booking(db, admin, b.id).id == b.id
    with pytest.raises(NotFound):
        svc.get_booking(db, other_user, b.id)


def test_list_user_bookings_only_returns_own(db, user, other_user, trip, now, make_booking_data):
    mine = _pending(db, user, trip, now, make_booking_data)
    _pending(db, other_user, trip, now, make_booking_data)
    assert [b.id for b in svc.list_user_bookings(db, user)] == [mine.id]


def test_list_all_bookings_filters(db, user, admin, trip, travel, now, make_booking_data):
    _pending(db, user, trip, now, make_booking_data)
    svc.create_booking(db, user, "travel", travel.id, make_booking_data(1), now=now)

    total, items = svc.list_all_bookings(db, admin)
    assert total == 2
    total, items = svc.list_all_bookings(db, admin, catalog_type="travel")
    assert total == 1 and items[0].booking_code.startswith("TRV-")
    total, _ = svc.list_all_bookings(db, admin, status="lunas")
    assert total == 0
    total, _ = svc.list_all_bookings(db, admin, search="budi")
    assert total == 2
    with pytest.raises(BookingValidationError):
        svc.list_all_bookings(db, admin, status="paid")
    with pytest.raises(Forbidden):
        svc.list_all_bookings(db, user)


def test_statistics(db, user, admin, trip, now, make_booking_data):
    b = _awaiting_validation(db, user, trip, now, make_booking_data)
    svc.approve_booking(db, admin, b.id, now=now)
    _pending(db, user, trip, now, make_booking_data)

    stats = svc.booking_statistics(db, admin)
    assert stats["total_bookings"] == 2
    assert stats["lunas"] == 1
    assert stats["menunggu_pembayaran"] == 1
    assert stats["expired"] == 0
    assert stats["total_revenue"] == 2000000.0
    assert stats["trip_bookings"] == 2
    assert stats["travel_bookings"] == 0


def test_booking_to_dict(db, user, trip, now, make_booking_data):
    b = _pending(db, user, trip, now, make_booking_data)
    out = svc.bookings_to_dicts(db, [b], now=now)[0]
    assert out["status"] == "menunggu_pembayaran"
    assert out["total_price"] == 2000000.0
    assert out["catalog"]["title"] == "Open Trip Bromo"
    assert out["payment_proof"] is None
    assert out["is_expired"] is False
    assert out["can_download_ticket"] is False


def test_notification_type_is_constrained(db, customer):
    db.add(Notification(id="n-1", user_id=customer.id, type="promo_blast", title="x", message="x", data={}))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
