"""
Authentication endpoints - admin login, guest access and token checks.

Two token kinds are issued:
- POST /auth/login returns a signed JWT (HS256, JWT_EXPIRES_HOURS lifetime)
- POST /auth/guest returns a random guest token for the shared guest password
"""

from typing import Optional
import logging

from fastapi import APIRouter, Header, HTTPException, status

from civicsense.core.exceptions import CivicSenseError
from civicsense.models.admin import (
    AdminResponse,
    GuestLoginRequest,
    GuestLoginResponse,
    LoginRequest,
    LoginResponse,
    VerifyResponse,
)
from civicsense.routes.deps import http_error
from civicsense.services.admin_service import get_admin_registry, public_admin
from civicsense.utils.security import extract_bearer_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest):
    """
    Log in with username (or email) and password.

    Returns:
        token: JWT carrying id, username, role and permissions
        admin: Admin profile (never the password hash)
    """
    try:
        return get_admin_registry().login(request.username, request.password)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Admin login error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed",
        )


@router.post("/guest", response_model=GuestLoginResponse)
def guest_login(request: GuestLoginRequest):
    """Exchange the guest password for a guest token (view, assign and status permissions)."""
    try:
        return get_admin_registry().issue_guest_token(request.password)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Guest token error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate guest token",
        )


@router.get("/verify", response_model=VerifyResponse)
async def verify_token(authorization: Optional[str] = Header(None)):
    try:
        admin = get_admin_registry().resolve_token(extract_bearer_token(authorization))
        return {"valid": True, "admin": public_admin(admin)}
    except CivicSenseError as e:
        raise http_error(e)


@router.get("/me", response_model=AdminResponse)
async def get_current_admin(authorization: Optional[str] = Header(None)):
    try:
        admin = get_admin_registry().resolve_token(extract_bearer_token(authorization))
        return public_admin(admin)
    except CivicSenseError as e:
        raise http_error(e)


@router.post("/logout")
async def logout(authorization: Optional[str] = Header(None)):
    """Revoke a guest token. JWTs are stateless and simply expire."""
    try:
        return get_admin_registry().logout(extract_bearer_token(authorization))
    except CivicSenseError as e:
        raise http_error(e)
