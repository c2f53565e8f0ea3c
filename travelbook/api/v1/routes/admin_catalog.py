from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from travelbook.api.deps import require_roles
from travelbook.core.identity import Caller, ROLE_ADMIN
from travelbook.db.session import get_db
from travelbook.models.booking import CatalogType
from travelbook.schemas.catalog import TravelIn, TravelUpdate, TripIn, TripUpdate
from travelbook.services import catalog_service
from travelbook.services.catalog_service import travel_to_dict, trip_to_dict

router = APIRouter(tags=["admin-catalog"])

admin_only = require_roles(ROLE_ADMIN)

TRIP = CatalogType.TRIP
TRAVEL = CatalogType.TRAVEL


# -------------------------
# Trips
# -------------------------
@router.get("/admin/trips")
def list_trips(q: str | None = None, limit: int = 50, offset: int = 0,
               db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    items = catalog_service.list_trips(db, q=q, limit=limit, offset=offset, include_inactive=True)
    return {"message": "Trips retrieved successfully", "data": items}


@router.post("/admin/trips", status_code=201)
def create_trip(body: TripIn, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    t = catalog_service.create_catalog_row(db, me.id, TRIP, body.model_dump())
    return {"message": "Trip created successfully", "data": trip_to_dict(t)}


@router.get("/admin/trips/{trip_id}")
def show_trip(trip_id: str, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    t = catalog_service.get_catalog_row(db, TRIP, trip_id)
    return {"message": "Trip retrieved successfully", "data": trip_to_dict(t)}


@router.put("/admin/trips/{trip_id}")
def update_trip(trip_id: str, body: TripUpdate, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    t = catalog_service.update_catalog_row(db, me.id, TRIP, trip_id, body.model_dump(exclude_unset=True))
    return {"message": "Trip updated successfully", "data": trip_to_dict(t)}


@router.delete("/admin/trips/{trip_id}")
def delete_trip(trip_id: str, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    t = catalog_service.deactivate_catalog_row(db, me.id, TRIP, trip_id)
    return {"message": "Trip deactivated successfully", "data": trip_to_dict(t)}


# -------------------------
# Travels
# -------------------------
@router.get("/admin/travels")
def list_travels(origin: str | None = None, destination: str | None = None, limit: int = 50, offset: int = 0,
                 db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    items = catalog_service.list_travels(db, origin=origin, destination=destination, limit=limit, offset=offset,
                                         include_inactive=True)
    return {"message": "Travels retrieved successfully", "data": items}


@router.post("/admin/travels", status_code=201)
def create_travel(body: TravelIn, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    t = catalog_service.create_catalog_row(db, me.id, TRAVEL, body.model_dump())
    return {"message": "Travel created successfully", "data": travel_to_dict(t)}


@router.get("/admin/travels/{travel_id}")
def show_travel(travel_id: str, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    t = catalog_service.get_catalog_row(db, TRAVEL, travel_id)
    return {"message": "Travel retrieved successfully", "data": travel_to_dict(t)}


@router.put("/admin/travels/{travel_id}")
def update_travel(travel_id: str, body: TravelUpdate, db: Session = Depends(get_db),
                  me: Caller = Depends(admin_only)):
    t = catalog_service.update_catalog_row(db, me.id, TRAVEL, travel_id, body.model_dump(exclude_unset=True))
    return {"message": "Travel updated successfully", "data": travel_to_dict(t)}


@router.delete("/admin/travels/{travel_id}")
def delete_travel(travel_id: str, db: Session = Depends(get_db), me: Caller = Depends(admin_only)):
    t = catalog_service.deactivate_catalog_row(db, me.id, TRAVEL, travel_id)
    return {"message": "Travel deactivated successfully", "data": travel_to_dict(t)}
