"""
Booking lifecycle engine.

Every operation takes an explicit ``Session`` and ``Caller`` and an optional
``now`` (UTC). Status changes go through ``_guarded_transition``: a single
``UPDATE ... WHERE id = :id AND status IN (:sources)`` so that of two racing
transitions on one booking only one can win. The loser gets ``InvalidState``
and the row is left as the winner wrote it.
"""
import logging
import random
import string
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError
from sqlalchemy import select, update, func, cast, String
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from travelbook.core.config import settings
from travelbook.core.errors import (
    BookingValidationError,
    CatalogNotFound,
    Forbidden,
    InvalidState,
    NotFound,
    QuotaExceeded,
)
from travelbook.core.identity import Caller
from travelbook.models.booking import Booking, BookingStatus, CatalogType
from travelbook.models.payment_proof import PaymentProof
from travelbook.models.user import User
from travelbook.schemas.booking import BookingDataIn
from travelbook.services import notification_service
from travelbook.services.audit_service import log_audit, SYSTEM_ACTOR
from travelbook.services.booking_state import EXPIRABLE_STATUSES, ensure_transition, sources_of
from travelbook.services.catalog_service import CatalogItem, get_catalog_item, get_catalog_items
from travelbook.services.pricing import compute_total

logger = logging.getLogger(__name__)

MSG_EXPECT_PEMBAYARAN = "Booking tidak dalam status menunggu pembayaran"
MSG_EXPECT_VALIDASI = "Booking tidak dalam status menunggu validasi"
MSG_NOT_FOUND = "Booking tidak ditemukan atau akses ditolak"
MAX_PER_PAGE = 50


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def expiry_window() -> timedelta:
    return timedelta(hours=settings.BOOKING_EXPIRY_HOURS)


def is_expired(b: Booking, now: datetime | None = None) -> bool:
    return as_utc(b.expired_at) <= as_utc(now or utcnow())


def make_booking_code(catalog_type: CatalogType) -> str:
    prefix = "TRP-" if catalog_type == CatalogType.TRIP else "TRV-"
    return prefix + "".join(random.choices(string.ascii_uppercase + string.digits, k=6))


def _require_admin(caller: Caller, action: str) -> None:
    if not caller.is_admin:
        logger.warning("Caller %s (role=%s) refused: %s requires admin", caller.id, caller.role, action)
        raise Forbidden("Akses ditolak. Hanya admin yang dapat melakukan aksi ini.")


def _guarded_transition(db: Session, booking_id: str, target: BookingStatus, *extra_where, **values) -> bool:
    """Conditional status write. Returns False when the stored status no longer allows it."""
    sources = sources_of(target)
    for s in sources:
        ensure_transition(s, target)
    stmt = (
        update(Booking)
        .where(Booking.id == booking_id, Booking.status.in_(list(sources)), *extra_where)
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount == 1


def _catalog_name(db: Session, b: Booking) -> str:
    item = get_catalog_item(db, b.catalog_type, b.catalog_id, active_only=False)
    return item.name if item else b.booking_code


# -------------------------
# Create
# -------------------------
def _coerce_booking_data(data) -> BookingDataIn:
    if isinstance(data, BookingDataIn):
        return data
    try:
        return BookingDataIn.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(x) for x in err.get("loc", ()))
        raise BookingValidationError(f"Field {loc} tidak valid: {err.get('msg')}", field=loc or None) from e


def _validate_booking_data(data: BookingDataIn, item: CatalogItem, now: datetime) -> None:
    if data.participant_count < 1:
        raise BookingValidationError("Jumlah peserta minimal 1 orang", field="participants")
    if data.tanggal_keberangkatan <= now.date():
        raise BookingValidationError("Tanggal keberangkatan harus di masa depan", field="tanggal_keberangkatan")
    if item.catalog_type == CatalogType.TRAVEL and data.participant_count > item.max_participants:
        raise BookingValidationError(
            f"Jumlah penumpang harus antara 1-{item.max_participants} orang sesuai kapasitas travel",
            field="passengers",
        )


def create_booking(db: Session, caller: Caller, catalog_type: CatalogType | str, catalog_id: str, data,
                   now: datetime | None = None) -> tuple[Booking, CatalogItem]:
    now = as_utc(now or utcnow())
    try:
        catalog_type = CatalogType(catalog_type)
    except ValueError:
        raise CatalogNotFound(f"Jenis katalog tidak dikenal: {catalog_type}")
    data = _coerce_booking_data(data)

    item = get_catalog_item(db, catalog_type, catalog_id)
    if not item:
        label = "Trip" if catalog_type == CatalogType.TRIP else "Travel"
        raise CatalogNotFound(f"{label} tidak ditemukan atau tidak aktif")

    if catalog_type == CatalogType.TRIP and (item.quota or 0) <= 0:
        raise QuotaExceeded("Maaf, kuota trip ini sudah penuh. Silakan pilih trip lain atau hubungi admin.")

    _validate_booking_data(data, item, now)

    if catalog_type == CatalogType.TRIP and data.participant_count > item.quota:
        raise QuotaExceeded(f"Jumlah peserta melebihi sisa kuota trip ({item.quota} orang)")

    total = compute_total(catalog_type, item.unit_price, data.participant_count)

    # booking_code must be unique
    for _ in range(10):
        code = make_booking_code(catalog_type)
        if not db.scalar(select(Booking.id).where(Booking.booking_code == code)):
            break
    else:
        raise RuntimeError("could not allocate booking code")

    booking = Booking(
        id=str(uuid.uuid4()),
        booking_code=code,
        user_id=caller.id,
        catalog_type=catalog_type,
        catalog_id=item.id,
        booking_data=data.to_record(),
        total_price=total,
        status=BookingStatus.MENUNGGU_PEMBAYARAN,
        expired_at=now + expiry_window(),
        created_at=now,
        updated_at=now,
    )
    db.add(booking)
    log_audit(db, caller.id, "booking.create", "booking", booking.id,
              {"catalog_type": catalog_type.value, "catalog_id": item.id, "total_price": total})
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s created for %s %s (total=%s)", booking.booking_code, catalog_type.value, item.id, total)

    notification_service.booking_created(db, booking, item.name)
    return booking, item


# -------------------------
# Payment proof
# -------------------------
def ensure_not_expired(db: Session, b: Booking, now: datetime | None = None) -> None:
    """Expire an overdue pending booking on the spot and refuse the payment proof."""
    now = as_utc(now or utcnow())
    if not is_expired(b, now):
        return
    if _guarded_transition(db, b.id, BookingStatus.EXPIRED, Booking.expired_at <= now):
        log_audit(db, SYSTEM_ACTOR, "booking.expire", "booking", b.id, {"reason": "payment_proof_after_expiry"})
    db.commit()
    logger.info("Booking %s expired before payment proof upload", b.booking_code)
    raise InvalidState(f"{MSG_EXPECT_PEMBAYARAN}: booking sudah expired. Silakan booking ulang.")


def upload_payment_proof(db: Session, caller: Caller, booking_id: str, image_url: str,
                         bank_name: str | None = None, now: datetime | None = None) -> tuple[Booking, PaymentProof]:
    now = as_utc(now or utcnow())
    b = db.get(Booking, booking_id)
    if not b or b.user_id != caller.id:
        raise NotFound(MSG_NOT_FOUND)
    if bank_name and bank_name not in settings.payment_proof_banks:
        raise BookingValidationError(
            f"bank_name harus salah satu dari: {', '.join(settings.payment_proof_banks)}", field="bank_name"
        )

    ensure_transition(b.status, BookingStatus.MENUNGGU_VALIDASI, MSG_EXPECT_PEMBAYARAN)

    ensure_not_expired(db, b, now)

    if db.scalar(select(PaymentProof.id).where(PaymentProof.booking_id == b.id)):
        raise InvalidState(f"{MSG_EXPECT_PEMBAYARAN}: bukti pembayaran sudah diupload")

    if not _guarded_transition(db, b.id, BookingStatus.MENUNGGU_VALIDASI, Booking.expired_at > now):
        db.rollback()
        logger.warning("Payment proof for %s lost a race with another transition", b.booking_code)
        raise InvalidState(MSG_EXPECT_PEMBAYARAN)

    proof = PaymentProof(
        id=str(uuid.uuid4()),
        booking_id=b.id,
        image_url=image_url,
        bank_name=bank_name,
        uploaded_at=now,
    )
    db.add(proof)
    log_audit(db, caller.id, "booking.payment_proof", "booking", b.id, {"bank_name": bank_name})
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidState(f"{MSG_EXPECT_PEMBAYARAN}: bukti pembayaran sudah diupload")
    db.refresh(b)
    db.refresh(proof)
    logger.info("Payment proof uploaded for booking %s", b.booking_code)

    notification_service.payment_proof_uploaded(db, b, _catalog_name(db, b))
    return b, proof


# -------------------------
# Admin validation
# -------------------------
def _load_for_admin(db: Session, caller: Caller, booking_id: str, action: str) -> Booking:
    _require_admin(caller, action)
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFound("Booking tidak ditemukan")
    return b


def approve_booking(db: Session, caller: Caller, booking_id: str, now: datetime | None = None) -> Booking:
    now = as_utc(now or utcnow())
    b = _load_for_admin(db, caller, booking_id, "approve")
    ensure_transition(b.status, BookingStatus.LUNAS, MSG_EXPECT_VALIDASI)
    if not _guarded_transition(db, b.id, BookingStatus.LUNAS, updated_at=now):
        db.rollback()
        raise InvalidState(MSG_EXPECT_VALIDASI)
    log_audit(db, caller.id, "booking.approve", "booking", b.id, {})
    db.commit()
    db.refresh(b)
    logger.info("Booking %s approved by %s", b.booking_code, caller.id)

    notification_service.payment_approved(db, b, _catalog_name(db, b))
    return b


def reject_booking(db: Session, caller: Caller, booking_id: str, reason: str | None = None,
                   now: datetime | None = None) -> Booking:
    now = as_utc(now or utcnow())
    b = _load_for_admin(db, caller, booking_id, "reject")
    reason = (reason or "").strip() or None
    ensure_transition(b.status, BookingStatus.DITOLAK, MSG_EXPECT_VALIDASI)
    if not _guarded_transition(db, b.id, BookingStatus.DITOLAK, rejection_reason=reason, updated_at=now):
        db.rollback()
        raise InvalidState(MSG_EXPECT_VALIDASI)
    log_audit(db, caller.id, "booking.reject", "booking", b.id, {"reason": reason})
    db.commit()
    db.refresh(b)
    logger.info("Booking %s rejected by %s", b.booking_code, caller.id)

    notification_service.payment_rejected(db, b, _catalog_name(db, b), reason)
    return b


# -------------------------
# Expiry sweep
# -------------------------
@dataclass
class SweepResult:
    expired: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"expired": len(self.expired), "skipped": len(self.skipped), "failed": len(self.failed)}


def sweep_expired_bookings(db: Session, now: datetime | None = None, notify: bool | None = None) -> SweepResult:
    """Expire every pending booking whose expired_at has passed. Safe to re-run."""
    now = as_utc(now or utcnow())
    if notify is None:
        notify = settings.NOTIFY_ON_EXPIRY
    result = SweepResult()

    overdue = db.scalars(
        select(Booking.id)
        .where(Booking.status.in_(list(EXPIRABLE_STATUSES)), Booking.expired_at <= now)
        .order_by(Booking.expired_at.asc())
    ).all()

    for booking_id in overdue:
        try:
            if not _guarded_transition(db, booking_id, BookingStatus.EXPIRED, Booking.expired_at <= now):
                # changed by a user action since the scan
                db.rollback()
                result.skipped.append(booking_id)
                continue
            log_audit(db, SYSTEM_ACTOR, "booking.expire", "booking", booking_id, {"swept_at": now.isoformat()})
            db.commit()
        except Exception:
            # one bad booking must not stop the batch
            db.rollback()
            logger.exception("Failed to expire booking %s", booking_id)
            result.failed.append(booking_id)
            continue
        result.expired.append(booking_id)

        if notify:
            b = db.get(Booking, booking_id)
            if b:
                notification_service.booking_expired(db, b, _catalog_name(db, b))

    if overdue:
        logger.info("Expiry sweep: %s", result.as_dict())
    return result


# -------------------------
# Reads
# -------------------------
def get_booking(db: Session, caller: Caller, booking_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b or (not caller.is_admin and b.user_id != caller.id):
        raise NotFound(MSG_NOT_FOUND)
    return b


def get_payment_proof(db: Session, booking_id: str) -> PaymentProof | None:
    return db.scalar(select(PaymentProof).where(PaymentProof.booking_id == booking_id))


def list_user_bookings(db: Session, caller: Caller) -> list[Booking]:
    return list(db.scalars(
        select(Booking).where(Booking.user_id == caller.id).order_by(Booking.created_at.desc())
    ))


def list_all_bookings(db: Session, caller: Caller, status: str | None = None, catalog_type: str | None = None,
                      search: str | None = None, page: int = 1, per_page: int = 10) -> tuple[int, list[Booking]]:
    _require_admin(caller, "list bookings")
    per_page = max(1, min(per_page, MAX_PER_PAGE))
    page = max(1, page)

    stmt = select(Booking)
    if status:
        try:
            stmt = stmt.where(Booking.status == BookingStatus(status))
        except ValueError:
            raise BookingValidationError(f"Status tidak dikenal: {status}", field="status")
    if catalog_type:
        try:
            stmt = stmt.where(Booking.catalog_type == CatalogType(catalog_type))
        except ValueError:
            raise BookingValidationError(f"Jenis katalog tidak dikenal: {catalog_type}", field="catalog_type")
    if search:
        ql = f"%{search.lower()}%"
        user_ids = select(User.id).where(func.lower(User.email).like(ql) | func.lower(User.full_name).like(ql))
        stmt = stmt.where(
            Booking.user_id.in_(user_ids)
            | func.lower(Booking.booking_code).like(ql)
            | func.lower(cast(Booking.booking_data, String)).like(ql)
        )

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    items = db.scalars(
        stmt.order_by(Booking.created_at.desc()).limit(per_page).offset((page - 1) * per_page)
    ).all()
    return int(total), list(items)


def booking_statistics(db: Session, caller: Caller) -> dict:
    _require_admin(caller, "statistics")
    by_status = dict(db.execute(select(Booking.status, func.count(Booking.id)).group_by(Booking.status)).all())
    by_type = dict(db.execute(select(Booking.catalog_type, func.count(Booking.id)).group_by(Booking.catalog_type)).all())
    revenue = db.scalar(
        select(func.coalesce(func.sum(Booking.total_price), 0)).where(Booking.status == BookingStatus.LUNAS)
    )
    out = {"total_bookings": int(sum(by_status.values()))}
    for s in BookingStatus:
        out[s.value] = int(by_status.get(s, 0))
    out["total_revenue"] = float(revenue or 0)
    out["trip_bookings"] = int(by_type.get(CatalogType.TRIP, 0))
    out["travel_bookings"] = int(by_type.get(CatalogType.TRAVEL, 0))
    return out


# -------------------------
# Serialization
# -------------------------
def proof_to_dict(p: PaymentProof | None) -> dict | None:
    if not p:
        return None
    return {
        "id": p.id,
        "booking_id": p.booking_id,
        "image_url": p.image_url,
        "bank_name": p.bank_name,
        "uploaded_at": as_utc(p.uploaded_at).isoformat() if p.uploaded_at else None,
    }


def booking_to_dict(b: Booking, catalog: CatalogItem | None = None, proof: PaymentProof | None = None,
                    now: datetime | None = None) -> dict:
    return {
        "id": b.id,
        "booking_code": b.booking_code,
        "user_id": b.user_id,
        "catalog_type": b.catalog_type.value,
        "catalog_id": b.catalog_id,
        "catalog": catalog.details if catalog else None,
        "booking_data": b.booking_data or {},
        "total_price": float(b.total_price),
        "status": b.status.value,
        "expired_at": as_utc(b.expired_at).isoformat(),
        "rejection_reason": b.rejection_reason,
        "created_at": as_utc(b.created_at).isoformat() if b.created_at else None,
        "updated_at": as_utc(b.updated_at).isoformat() if b.updated_at else None,
        "payment_proof": proof_to_dict(proof),
        "is_expired": is_expired(b, now),
        "can_download_ticket": b.status == BookingStatus.LUNAS,
    }


def bookings_to_dicts(db: Session, bookings: list[Booking], now: datetime | None = None) -> list[dict]:
    """Serialize a page of bookings with two batch lookups instead of one per booking."""
    catalogs = get_catalog_items(db, [(b.catalog_type, b.catalog_id) for b in bookings])
    ids = [b.id for b in bookings]
    proofs = {p.booking_id: p for p in db.scalars(select(PaymentProof).where(PaymentProof.booking_id.in_(ids)))} if ids else {}
    return [
        booking_to_dict(b, catalogs.get((b.catalog_type, b.catalog_id)), proofs.get(b.id), now)
        for b in bookings
    ]
