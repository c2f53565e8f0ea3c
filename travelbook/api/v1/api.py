from fastapi import APIRouter
from travelbook.api.v1.routes.auth import router as auth_router
from travelbook.api.v1.routes.public import router as public_router
from travelbook.api.v1.routes.bookings import router as bookings_router
from travelbook.api.v1.routes.admin import router as admin_router
from travelbook.api.v1.routes.admin_catalog import router as admin_catalog_router
from travelbook.api.v1.routes.notifications import router as notifications_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(public_router)
api_router.include_router(bookings_router)
api_router.include_router(admin_router)
api_router.include_router(admin_catalog_router)
api_router.include_router(notifications_router)
