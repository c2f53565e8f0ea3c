from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session
from travelbook.api.deps import get_caller
from travelbook.core.config import settings
from travelbook.core.errors import BookingValidationError, InvalidState, NotFound
from travelbook.core.identity import Caller
from travelbook.db.session import get_db
from travelbook.models.booking import BookingStatus, CatalogType
from travelbook.schemas.booking import BookingCreateIn
from travelbook.services import booking_service
from travelbook.services.booking_state import can_transition
from travelbook.services.catalog_service import get_catalog_item
from travelbook.services.proof_storage import discard_payment_proof, extension_for, store_payment_proof

router = APIRouter(tags=["bookings"])


# Registered before the create route: both match POST /bookings/{x}/{y}.
@router.post("/bookings/{booking_id}/payment-proof")
def upload_payment_proof(booking_id: str,
                         payment_proof: UploadFile = File(...),
                         bank_name: str | None = Form(None),
                         db: Session = Depends(get_db),
                         caller: Caller = Depends(get_caller)):
    if not extension_for(payment_proof.content_type):
        raise HTTPException(status_code=422, detail="payment_proof harus berupa gambar jpeg, png, gif atau webp")
    content = payment_proof.file.read(settings.PAYMENT_PROOF_MAX_BYTES + 1)
    if not content:
        raise HTTPException(status_code=422, detail="payment_proof kosong")
    if len(content) > settings.PAYMENT_PROOF_MAX_BYTES:
        raise HTTPException(status_code=422, detail="payment_proof melebihi ukuran maksimum")

    # Cheap checks before the file is written; the engine re-checks under its guarded update.
    b = booking_service.get_booking(db, caller, booking_id)
    if b.user_id != caller.id:
        raise NotFound(booking_service.MSG_NOT_FOUND)
    if not can_transition(b.status, BookingStatus.MENUNGGU_VALIDASI):
        raise InvalidState(booking_service.MSG_EXPECT_PEMBAYARAN)
    if bank_name and bank_name not in settings.payment_proof_banks:
        raise BookingValidationError(
            f"bank_name harus salah satu dari: {', '.join(settings.payment_proof_banks)}", field="bank_name"
        )
    booking_service.ensure_not_expired(db, b)
    image_url = store_payment_proof(booking_id=b.id, content=content, content_type=payment_proof.content_type)

    try:
        booking, proof = booking_service.upload_payment_proof(db, caller, booking_id, image_url, bank_name or None)
    except Exception:
        discard_payment_proof(image_url)
        raise
    return {
        "message": "Bukti pembayaran berhasil diupload",
        "data": {
            "booking": booking_service.booking_to_dict(booking),
            "payment_proof": booking_service.proof_to_dict(proof),
        },
    }


@router.post("/bookings/{catalog_type}/{catalog_id}", status_code=201)
def create_booking(catalog_type: CatalogType, catalog_id: str, body: BookingCreateIn,
                   db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    booking, catalog = booking_service.create_booking(
        db, caller, catalog_type, catalog_id, body.to_booking_data()
    )
    return {
        "message": "Booking berhasil dibuat",
        "data": {
            "booking_id": booking.id,
            "booking_code": booking.booking_code,
            "total_price": float(booking.total_price),
            "status": booking.status.value,
            "expired_at": booking_service.as_utc(booking.expired_at).isoformat(),
            "catalog": catalog.details,
        },
    }


@router.get("/bookings")
def my_bookings(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    bookings = booking_service.list_user_bookings(db, caller)
    return {"message": "Booking berhasil diambil", "data": booking_service.bookings_to_dicts(db, bookings)}


@router.get("/bookings/{booking_id}")
def booking_detail(booking_id: str, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    b = booking_service.get_booking(db, caller, booking_id)
    catalog = get_catalog_item(db, b.catalog_type, b.catalog_id, active_only=False)
    proof = booking_service.get_payment_proof(db, b.id)
    return {"message": "Detail booking berhasil diambil", "data": booking_service.booking_to_dict(b, catalog, proof)}
