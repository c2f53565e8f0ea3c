"""
Notification sink for booking lifecycle events.

Writes go to the ``notifications`` table in their own commit, after the
booking change has been committed. A failure here is logged and dropped:
it never undoes or blocks a booking transition.
"""
import logging
import uuid

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from travelbook.core.errors import NotFound
from travelbook.core.identity import ROLE_ADMIN
from travelbook.models.booking import Booking
from travelbook.models.notification import (
    Notification,
    TYPE_BOOKING_CREATED,
    TYPE_PAYMENT_PROOF_UPLOADED,
    TYPE_PAYMENT_APPROVED,
    TYPE_PAYMENT_REJECTED,
    TYPE_BOOKING_EXPIRED,
)
from travelbook.models.user import User
from travelbook.services.pricing import format_rupiah

logger = logging.getLogger(__name__)


def _admin_ids(db: Session) -> list[str]:
    return list(db.scalars(select(User.id).where(User.role == ROLE_ADMIN, User.is_active == True)))


def _emit(db: Session, user_ids: list[str | None], ntype: str, title: str, message: str, data: dict) -> int:
    try:
        for uid in user_ids:
            db.add(Notification(
                id=str(uuid.uuid4()),
                user_id=uid,
                type=ntype,
                title=title,
                message=message,
                data=data,
                is_read=False,
            ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create %s notification(s)", ntype)
        return 0
    logger.info("Created %d %s notification(s)", len(user_ids), ntype)
    return len(user_ids)


def notify_admins(db: Session, ntype: str, title: str, message: str, data: dict | None = None) -> int:
    try:
        recipients: list[str | None] = _admin_ids(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to look up admin recipients for %s", ntype)
        return 0
    if not recipients:
        # keep the event visible as an admin broadcast
        recipients = [None]
    return _emit(db, recipients, ntype, title, message, data or {})


def notify_user(db: Session, user_id: str, ntype: str, title: str, message: str, data: dict | None = None) -> int:
    return _emit(db, [user_id], ntype, title, message, data or {})


def _payload(b: Booking, catalog_name: str, **extra) -> dict:
    return {
        "booking_id": b.id,
        "booking_code": b.booking_code,
        "catalog_type": b.catalog_type.value,
        "catalog_name": catalog_name,
        "total_price": float(b.total_price),
        "status": b.status.value,
        **extra,
    }


def booking_created(db: Session, b: Booking, catalog_name: str) -> int:
    message = f"Booking baru untuk {catalog_name} senilai {format_rupiah(b.total_price)} menunggu pembayaran"
    return notify_admins(db, TYPE_BOOKING_CREATED, "Booking Baru Masuk", message, _payload(b, catalog_name))


def payment_proof_uploaded(db: Session, b: Booking, catalog_name: str) -> int:
    message = (f"Bukti pembayaran untuk booking {catalog_name} senilai {format_rupiah(b.total_price)} "
               "telah diupload dan menunggu validasi")
    return notify_admins(db, TYPE_PAYMENT_PROOF_UPLOADED, "Bukti Pembayaran Diterima", message, _payload(b, catalog_name))


def payment_approved(db: Session, b: Booking, catalog_name: str) -> int:
    message = (f"Pembayaran Anda untuk {catalog_name} senilai {format_rupiah(b.total_price)} "
               "telah disetujui. Booking Anda sudah lunas.")
    return notify_user(db, b.user_id, TYPE_PAYMENT_APPROVED, "Pembayaran Disetujui", message, _payload(b, catalog_name))


def payment_rejected(db: Session, b: Booking, catalog_name: str, reason: str | None = None) -> int:
    reason_text = f" Alasan: {reason}" if reason else ""
    message = (f"Pembayaran Anda untuk {catalog_name} senilai {format_rupiah(b.total_price)} "
               f"ditolak.{reason_text} Silakan booking ulang.")
    return notify_user(db, b.user_id, TYPE_PAYMENT_REJECTED, "Pembayaran Ditolak", message,
                       _payload(b, catalog_name, reason=reason))


def booking_expired(db: Session, b: Booking, catalog_name: str) -> int:
    message = (f"Booking Anda untuk {catalog_name} telah expired karena belum ada pembayaran "
               "dalam batas waktu. Silakan booking ulang.")
    return notify_user(db, b.user_id, TYPE_BOOKING_EXPIRED, "Booking Expired", message, _payload(b, catalog_name))


# -------------------------
# Read side
# -------------------------
def _visible_to(user_id: str, is_admin: bool):
    if is_admin:
        return (Notification.user_id == user_id) | (Notification.user_id.is_(None))
    return Notification.user_id == user_id


def list_notifications(db: Session, user_id: str, is_admin: bool = False, unread_only: bool = False,
                       limit: int = 20, offset: int = 0) -> tuple[int, list[Notification]]:
    stmt = select(Notification).where(_visible_to(user_id, is_admin))
    if unread_only:
        stmt = stmt.where(Notification.is_read == False)
    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    items = db.scalars(
        stmt.order_by(Notification.created_at.desc()).limit(min(limit, 100)).offset(max(offset, 0))
    ).all()
    return int(total), list(items)


def unread_count(db: Session, user_id: str, is_admin: bool = False) -> int:
    return int(db.scalar(
        select(func.count(Notification.id)).where(_visible_to(user_id, is_admin), Notification.is_read == False)
    ) or 0)


def mark_read(db: Session, user_id: str, notification_id: str, is_admin: bool = False) -> Notification:
    n = db.scalar(select(Notification).where(Notification.id == notification_id, _visible_to(user_id, is_admin)))
    if not n:
        raise NotFound("Notifikasi tidak ditemukan")
    n.is_read = True
    db.commit()
    return n


def mark_all_read(db: Session, user_id: str, is_admin: bool = False) -> int:
    res = db.execute(
        update(Notification)
        .where(_visible_to(user_id, is_admin), Notification.is_read == False)
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return res.rowcount or 0


def notification_to_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "data": n.data or {},
        "is_read": bool(n.is_read),
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }
