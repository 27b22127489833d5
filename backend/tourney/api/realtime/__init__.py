"""Realtime API routes."""
from fastapi import APIRouter

from tourney.api.realtime import routes_ws

router = APIRouter()

router.include_router(routes_ws.router, tags=["websocket"])
