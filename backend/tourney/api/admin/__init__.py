"""Admin API routes."""
from fastapi import APIRouter

from tourney.api.admin import routes_notifications

router = APIRouter()

router.include_router(routes_notifications.router, prefix="/admin", tags=["admin"])
