"""API dependencies."""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tourney.domain.notifications.services import NotificationService
from tourney.infra.security.jwt import decode_token
from tourney.services.notification_service import NotificationDeliveryService
from tourney.settings import Settings

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller. Only identity and role; no credential material."""

    id: str
    is_admin: bool = False


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_delivery_service(request: Request) -> NotificationDeliveryService:
    return request.app.state.delivery


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Get current authenticated user from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials, settings.secret_key, settings.algorithm)
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise credentials_exception

    return CurrentUser(id=str(user_id), is_admin=payload.get("role") == "admin")


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Gate for notification creation and deletion endpoints."""
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
