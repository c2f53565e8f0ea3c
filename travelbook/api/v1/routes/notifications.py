from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from travelbook.api.deps import get_caller
from travelbook.core.identity import Caller
from travelbook.db.session import get_db
from travelbook.services import notification_service

router = APIRouter(tags=["notifications"])


@router.get("/notifications")
def list_notifications(unread_only: bool = False, limit: int = 20, offset: int = 0,
                       db: Session = Depends(get_db), me: Caller = Depends(get_caller)):
    total, items = notification_service.list_notifications(
        db, me.id, is_admin=me.is_admin, unread_only=unread_only, limit=limit, offset=offset
    )
    return {"total": total, "items": [notification_service.notification_to_dict(n) for n in items]}


@router.get("/notifications/unread-count")
def unread_count(db: Session = Depends(get_db), me: Caller = Depends(get_caller)):
    return {"unread": notification_service.unread_count(db, me.id, is_admin=me.is_admin)}


@router.put("/notifications/read-all")
def read_all(db: Session = Depends(get_db), me: Caller = Depends(get_caller)):
    return {"ok": True, "updated": notification_service.mark_all_read(db, me.id, is_admin=me.is_admin)}


@router.put("/notifications/{notification_id}/read")
def read_one(notification_id: str, db: Session = Depends(get_db), me: Caller = Depends(get_caller)):
    n = notification_service.mark_read(db, me.id, notification_id, is_admin=me.is_admin)
    return {"ok": True, "data": notification_service.notification_to_dict(n)}
