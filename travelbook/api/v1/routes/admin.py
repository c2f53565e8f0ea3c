from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from travelbook.db.session import get_db
from travelbook.api.deps import require_roles
from travelbook.core.identity import Caller, ROLE_ADMIN
from travelbook.schemas.booking import RejectIn
from travelbook.services import booking_service
from travelbook.services.catalog_service import get_catalog_item

router = APIRouter(tags=["admin"])

admin_only = require_roles(ROLE_ADMIN)


@router.get("/admin/bookings")
def list_bookings(status: str | None = None, catalog_type: str | None = None, search: str | None = None,
                  page: int = 1, per_page: int = 10,
                  db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    total, items = booking_service.list_all_bookings(
        db, me, status=status, catalog_type=catalog_type, search=search, page=page, per_page=per_page
    )
    per_page = max(1, min(per_page, booking_service.MAX_PER_PAGE))
    last_page = max(1, -(-total // per_page))
    return {
        "message": "Bookings retrieved successfully",
        "data": booking_service.bookings_to_dicts(db, items),
        "pagination": {
            "current_page": max(page, 1),
            "per_page": per_page,
            "total": total,
            "last_page": last_page,
            "has_more_pages": max(page, 1) < last_page,
        },
    }


@router.get("/admin/bookings/statistics")
def statistics(db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    return {"message": "Statistics retrieved successfully", "data": booking_service.booking_statistics(db, me)}


@router.get("/admin/bookings/{booking_id}")
def show_booking(booking_id: str, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    b = booking_service.get_booking(db, me, booking_id)
    catalog = get_catalog_item(db, b.catalog_type, b.catalog_id, active_only=False)
    proof = booking_service.get_payment_proof(db, b.id)
    return {"message": "Booking retrieved successfully", "data": booking_service.booking_to_dict(b, catalog, proof)}


@router.put("/admin/bookings/{booking_id}/approve")
def approve(booking_id: str, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    b = booking_service.approve_booking(db, me, booking_id)
    return {
        "message": "Pembayaran berhasil disetujui",
        "data": {"booking_id": b.id, "status": b.status.value},
    }


@router.put("/admin/bookings/{booking_id}/reject")
def reject(booking_id: str, body: RejectIn | None = None,
           db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    reason = body.reason if body else None
    b = booking_service.reject_booking(db, me, booking_id, reason)
    return {
        "message": "Pembayaran berhasil ditolak",
        "data": {"booking_id": b.id, "status": b.status.value, "reason": b.rejection_reason},
    }
