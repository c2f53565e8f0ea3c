from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from travelbook.db.session import get_db
from travelbook.models.booking import CatalogType
from travelbook.services.catalog_service import get_catalog_item, list_trips, list_travels

router = APIRouter(tags=["public"])


@router.get("/trips")
def get_trips(q: str | None = None, limit: int = 50, offset: int = 0, db: Session = Depends(get_db)):
    """Active trip packages, newest first."""
    items = list_trips(db, q=q, limit=limit, offset=offset)
    return {"message": "Trip berhasil diambil", "data": items}


@router.get("/trips/{trip_id}")
def get_trip(trip_id: str, db: Session = Depends(get_db)):
    item = get_catalog_item(db, CatalogType.TRIP, trip_id)
    if not item:
        raise HTTPException(status_code=404, detail="Trip tidak ditemukan")
    return {"message": "Detail trip berhasil diambil", "data": item.details}


@router.get("/travels")
def get_travels(origin: str | None = None, destination: str | None = None, limit: int = 50, offset: int = 0,
                db: Session = Depends(get_db)):
    items = list_travels(db, origin=origin, destination=destination, limit=limit, offset=offset)
    return {"message": "Travel berhasil diambil", "data": items}


@router.get("/travels/{travel_id}")
def get_travel(travel_id: str, db: Session = Depends(get_db)):
    item = get_catalog_item(db, CatalogType.TRAVEL, travel_id)
    if not item:
        raise HTTPException(status_code=404, detail="Travel tidak ditemukan")
    return {"message": "Detail travel berhasil diambil", "data": item.details}
