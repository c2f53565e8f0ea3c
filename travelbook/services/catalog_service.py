import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from travelbook.core.config import settings
from travelbook.core.errors import BookingValidationError, NotFound
from travelbook.models.booking import CatalogType
from travelbook.models.paket_trip import PaketTrip
from travelbook.models.travel import Travel
from travelbook.services.audit_service import log_audit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogItem:
    """Plain read-only view of a trip or travel the booking engine works with."""
    catalog_type: CatalogType
    id: str
    name: str
    unit_price: Decimal
    is_active: bool
    max_participants: int
    quota: int | None = None  # trips only
    details: dict = field(default_factory=dict)


def _money(v) -> float:
    return float(v) if v is not None else 0.0


def trip_to_dict(t: PaketTrip) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "location": t.location,
        "duration": t.duration,
        "price": _money(t.price),
        "quota": int(t.quota or 0),
        "image": t.image,
        "is_active": bool(t.is_active),
    }


def travel_to_dict(t: Travel) -> dict:
    return {
        "id": t.id,
        "origin": t.origin,
        "destination": t.destination,
        "vehicle_type": t.vehicle_type,
        "price_per_person": _money(t.price_per_person),
        "capacity": t.capacity,
        "image": t.image,
        "is_active": bool(t.is_active),
    }


def _trip_item(t: PaketTrip) -> CatalogItem:
    quota = int(t.quota or 0)
    return CatalogItem(
        catalog_type=CatalogType.TRIP,
        id=t.id,
        name=t.title,
        unit_price=Decimal(str(t.price)),
        is_active=bool(t.is_active),
        max_participants=quota,
        quota=quota,
        details=trip_to_dict(t),
    )


def _travel_item(t: Travel) -> CatalogItem:
    return CatalogItem(
        catalog_type=CatalogType.TRAVEL,
        id=t.id,
        name=f"{t.origin} - {t.destination}",
        unit_price=Decimal(str(t.price_per_person)),
        is_active=bool(t.is_active),
        max_participants=int(t.capacity or settings.TRAVEL_DEFAULT_MAX_PASSENGERS),
        details=travel_to_dict(t),
    )


def get_catalog_item(db: Session, catalog_type: CatalogType | str, catalog_id: str, active_only: bool = True) -> CatalogItem | None:
    catalog_type = CatalogType(catalog_type)
    if catalog_type == CatalogType.TRIP:
        t = db.get(PaketTrip, catalog_id)
        item = _trip_item(t) if t else None
    else:
        tr = db.get(Travel, catalog_id)
        item = _travel_item(tr) if tr else None
    if item is None or (active_only and not item.is_active):
        return None
    return item


def get_catalog_items(db: Session, keys: list[tuple[CatalogType, str]]) -> dict[tuple[CatalogType, str], CatalogItem]:
    """Batch lookup keyed by (catalog_type, catalog_id); inactive items included."""
    trip_ids = {cid for ctype, cid in keys if ctype == CatalogType.TRIP}
    travel_ids = {cid for ctype, cid in keys if ctype == CatalogType.TRAVEL}
    out: dict[tuple[CatalogType, str], CatalogItem] = {}
    if trip_ids:
        for t in db.scalars(select(PaketTrip).where(PaketTrip.id.in_(trip_ids))):
            out[(CatalogType.TRIP, t.id)] = _trip_item(t)
    if travel_ids:
        for tr in db.scalars(select(Travel).where(Travel.id.in_(travel_ids))):
            out[(CatalogType.TRAVEL, tr.id)] = _travel_item(tr)
    return out


def list_trips(db: Session, q: str | None = None, limit: int = 50, offset: int = 0,
               include_inactive: bool = False) -> list[dict]:
    stmt = select(PaketTrip)
    if not include_inactive:
        stmt = stmt.where(PaketTrip.is_active == True)
    if q:
        ql = f"%{q.lower()}%"
        stmt = stmt.where(PaketTrip.title.ilike(ql) | PaketTrip.location.ilike(ql))
    stmt = stmt.order_by(PaketTrip.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0))
    return [trip_to_dict(t) for t in db.scalars(stmt)]


def list_travels(db: Session, origin: str | None = None, destination: str | None = None,
                 limit: int = 50, offset: int = 0, include_inactive: bool = False) -> list[dict]:
    stmt = select(Travel)
    if not include_inactive:
        stmt = stmt.where(Travel.is_active == True)
    if origin:
        stmt = stmt.where(Travel.origin.ilike(f"%{origin}%"))
    if destination:
        stmt = stmt.where(Travel.destination.ilike(f"%{destination}%"))
    stmt = stmt.order_by(Travel.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0))
    return [travel_to_dict(t) for t in db.scalars(stmt)]


# -------------------------
# Admin write side
# -------------------------
_MODELS = {CatalogType.TRIP: PaketTrip, CatalogType.TRAVEL: Travel}
_NOT_FOUND = {CatalogType.TRIP: "Trip tidak ditemukan", CatalogType.TRAVEL: "Travel tidak ditemukan"}


def get_catalog_row(db: Session, catalog_type: CatalogType, catalog_id: str):
    row = db.get(_MODELS[catalog_type], catalog_id)
    if not row:
        raise NotFound(_NOT_FOUND[catalog_type])
    return row


def create_catalog_row(db: Session, actor_id: str, catalog_type: CatalogType | str, fields: dict):
    catalog_type = CatalogType(catalog_type)
    row = _MODELS[catalog_type](id=str(uuid.uuid4()), **fields)
    db.add(row)
    log_audit(db, actor_id, f"{catalog_type.value}.create", catalog_type.value, row.id, fields)
    db.commit()
    db.refresh(row)
    logger.info("%s %s created by %s", catalog_type.value, row.id, actor_id)
    return row


def update_catalog_row(db: Session, actor_id: str, catalog_type: CatalogType | str, catalog_id: str, changes: dict):
    """Apply a partial update. Prices of existing bookings are not touched."""
    catalog_type = CatalogType(catalog_type)
    row = get_catalog_row(db, catalog_type, catalog_id)
    columns = row.__table__.columns
    for name, value in changes.items():
        if value is None and not columns[name].nullable:
            raise BookingValidationError(f"{name} tidak boleh kosong", field=name)
    for name, value in changes.items():
        setattr(row, name, value)
    log_audit(db, actor_id, f"{catalog_type.value}.update", catalog_type.value, row.id, changes)
    db.commit()
    db.refresh(row)
    logger.info("%s %s updated by %s: %s", catalog_type.value, row.id, actor_id, sorted(changes))
    return row


def deactivate_catalog_row(db: Session, actor_id: str, catalog_type: CatalogType | str, catalog_id: str):
    # soft delete: bookings keep pointing at the row
    catalog_type = CatalogType(catalog_type)
    row = get_catalog_row(db, catalog_type, catalog_id)
    if row.is_active:
        row.is_active = False
        log_audit(db, actor_id, f"{catalog_type.value}.deactivate", catalog_type.value, row.id, {})
        db.commit()
        db.refresh(row)
        logger.info("%s %s deactivated by %s", catalog_type.value, row.id, actor_id)
    return row
