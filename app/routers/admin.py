"""
Admin session endpoints.

POST /login   — exchange the configured username/password for the admin token.
POST /logout  — stateless; the client discards its token.
GET  /status  — whether the request carries a valid admin token.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, status

from app.config import settings
from app.dependencies.auth import check_admin_credentials, is_admin_token
from app.models.schemas import AdminStatusResponse, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest) -> LoginResponse:
    if not check_admin_credentials(body.username, body.password):
        logger.warning("Failed admin login for %r", body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    logger.info("Admin %r logged in", body.username)
    return LoginResponse(token=settings.ADMIN_API_TOKEN)


@router.post("/logout")
async def logout() -> dict:
    return {"success": True, "message": "Logged out"}


@router.get("/status", response_model=AdminStatusResponse)
async def admin_status(
    x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token"),
) -> AdminStatusResponse:
    return AdminStatusResponse(is_admin=is_admin_token(x_admin_token))
