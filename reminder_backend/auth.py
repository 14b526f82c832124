"""
Password login backed by a signed session cookie.

Single shared password: a session is either authenticated or not, there is
no notion of individual users.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, status

from reminder_backend.config import Settings, get_settings
from reminder_backend.schemas import AuthResult, AuthStatusResponse, LoginRequest

logger = logging.getLogger(__name__)

SESSION_KEY = "authenticated"

router = APIRouter(prefix="/auth", tags=["auth"])


def is_authenticated(request: Request) -> bool:
    return bool(request.session.get(SESSION_KEY))


def require_auth(request: Request) -> None:
    """Dependency guarding every journal and reminder route."""
    if not is_authenticated(request):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required"
        )


@router.post("/login", response_model=AuthResult)
def login(
    payload: LoginRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
):
    provided = payload.password or ""
    expected = settings.auth_password or ""
    if not expected or not secrets.compare_digest(provided.encode(), expected.encode()):
        logger.info("Rejected login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password"
        )
    request.session[SESSION_KEY] = True
    return AuthResult(success=True, message="Login successful")


@router.post("/logout", response_model=AuthResult)
def logout(request: Request):
    request.session.clear()
    return AuthResult(success=True, message="Logout successful")


@router.get("/status", response_model=AuthStatusResponse)
def auth_status(request: Request, settings: Settings = Depends(get_settings)):
    return AuthStatusResponse(
        authenticated=is_authenticated(request), hasPassword=settings.has_password
    )
