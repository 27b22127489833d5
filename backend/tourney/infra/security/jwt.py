"""Access token helpers.

Tokens are issued by the auth service; this service verifies them. ``create_access_token``
exists for scripts and tests.
"""
from datetime import timedelta
from typing import Any, Optional

from jose import JWTError, jwt

from tourney.domain.common.types import utcnow


def create_access_token(
    user_id: str,
    secret_key: str,
    algorithm: str = "HS256",
    role: str = "user",
    expires_minutes: int = 15,
) -> str:
    """Create a signed access token for a user id."""
    expire = utcnow() + timedelta(minutes=expires_minutes)
    payload = {"sub": user_id, "type": "access", "role": role, "exp": expire}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_token(token: str, secret_key: str, algorithm: str = "HS256") -> Optional[dict[str, Any]]:
    """Decode and verify a token. Returns None if invalid or expired."""
    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        return None


def user_id_from_access_token(token: str, secret_key: str, algorithm: str = "HS256") -> Optional[str]:
    """The ``sub`` of a valid access token, else None."""
    payload = decode_token(token, secret_key, algorithm)
    if not payload or payload.get("type") != "access":
        return None
    return payload.get("sub") or None
