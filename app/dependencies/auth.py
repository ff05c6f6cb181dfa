"""
Authentication dependencies for FastAPI routes.

Admin routes require the X-Admin-Token header issued by POST /api/admin/login.
The assistant's user identity comes from the optional X-User-Id header and
falls back to DEFAULT_USER_ID.
"""
from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from app.config import settings

logger = logging.getLogger(__name__)


def is_admin_token(token: Optional[str]) -> bool:
    """Constant-time comparison against the configured admin token."""
    if not token or not settings.ADMIN_API_TOKEN:
        return False
    return hmac.compare_digest(token.encode(), settings.ADMIN_API_TOKEN.encode())


def check_admin_credentials(username: str, password: str) -> bool:
    user_ok = hmac.compare_digest(username.encode(), settings.ADMIN_USERNAME.encode())
    password_ok = hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
    return user_ok and password_ok


async def require_admin(
    x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token"),
) -> str:
    """Reject the request with 401 unless a valid admin token is present."""
    if not is_admin_token(x_admin_token):
        logger.warning("Rejected admin request with missing or invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin authentication required.",
        )
    return settings.ADMIN_USERNAME


async def get_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """Extract the assistant user ID, or the default single-user ID."""
    return x_user_id or settings.DEFAULT_USER_ID
