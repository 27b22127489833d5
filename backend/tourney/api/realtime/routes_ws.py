"""WebSocket route for live notification counts."""
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from tourney.domain.common.errors import ConnectionAlreadyBoundError
from tourney.infra.security.jwt import user_id_from_access_token
from tourney.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def resolve_auth_frame(frame: dict[str, Any], settings: Settings) -> Optional[str]:
    """User id an auth frame may bind to, or None if it does not check out.

    With ``ws_auth_requires_token`` the frame must carry an access token whose
    subject matches ``userId`` (when given). Without it, ``userId`` is trusted.
    """
    claimed = frame.get("userId")
    claimed = str(claimed) if claimed not in (None, "") else None
    if not settings.ws_auth_requires_token:
        return claimed
    token = frame.get("token")
    if not token:
        return None
    subject = user_id_from_access_token(str(token), settings.secret_key, settings.algorithm)
    if subject is None:
        return None
    if claimed is not None and claimed != subject:
        return None
    return subject


async def _send_error(websocket: WebSocket, message: str) -> None:
    try:
        await websocket.send_json({"type": "error", "message": message})
    except (WebSocketDisconnect, RuntimeError, ConnectionError):
        pass


@router.websocket("/ws")
async def websocket_notifications(websocket: WebSocket):
    """Unread-count push channel. Clients authenticate with an ``auth`` frame after connecting."""
    state = websocket.app.state
    registry = state.registry
    dispatcher = state.dispatcher
    settings: Settings = state.settings

    await websocket.accept()
    registry.register(websocket)
    logger.info("✅ [WEBSOCKET] Connection accepted (%s open)", len(registry))

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
                continue
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("⚠️ [WEBSOCKET] Ignoring non-JSON frame")
                continue
            if not isinstance(frame, dict) or frame.get("type") != "auth":
                logger.debug("[WEBSOCKET] Ignoring frame: %r", frame)
                continue

            user_id = resolve_auth_frame(frame, settings)
            if user_id is None:
                logger.warning("⚠️ [WEBSOCKET] Auth frame rejected")
                await _send_error(websocket, "Authentication failed")
                continue
            try:
                await dispatcher.authenticate(websocket, user_id)
            except ConnectionAlreadyBoundError as e:
                logger.warning("⚠️ [WEBSOCKET] %s", e)
                await _send_error(websocket, "Connection already authenticated as another user")
                continue
            logger.info("✅ [WEBSOCKET] Client authenticated for user %s", user_id)
    except WebSocketDisconnect:
        pass
    except (RuntimeError, ConnectionError) as e:
        logger.warning("⚠️ [WEBSOCKET] Connection error: %s", e)
    finally:
        registry.unregister(websocket)
        logger.info("[WEBSOCKET] Connection closed (%s open)", len(registry))
