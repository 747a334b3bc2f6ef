# lostbuddy/accounts/auth_routes.py
"""
Authentication routes.

Endpoints:
- POST /auth/register — Create account
- POST /auth/login — Log in by email or mobile
- POST /auth/logout — Clear the session (idempotent)
- GET  /auth/me — Current session
- GET  /auth/status — Internal status (not in schema)

The app serves a single client context: the session slot lives in the
configured store under CURRENT_SESSION_KEY, like a browser profile.

Feature Flag:
- AUTH_ENDPOINTS_ENABLED: routes answer 503 when off

Status codes by error category:
- validation -> 422, conflict -> 409, authentication -> 401, storage -> 503

Security:
- Login failures share one message (no account enumeration)
- Password hash never leaves the service
- No raw PII in logs
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from lostbuddy.db import get_store, is_auth_endpoints_enabled
from lostbuddy.accounts.auth import AuthService, get_auth_service
from lostbuddy.accounts.models import (
    AccountResponse,
    AuthErrorCode,
    ErrorCategory,
    Session,
)
from lostbuddy.accounts.session import SessionContext

log = logging.getLogger("lostbuddy.auth_routes")

# ============================================================
# Router Setup
# ============================================================

router = APIRouter(prefix="/auth", tags=["Authentication"])

STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 422,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.STORAGE: 503,
}


# ============================================================
# Request/Response Schemas
# ============================================================

class RegisterInput(BaseModel):
    """Input schema for /auth/register. Validation happens in AuthService."""

    name: str = Field(default="", description="Display name")
    mobile: str = Field(default="", description="10-digit mobile number")
    email: str = Field(default="", description="Email address")
    city: str = Field(default="", description="City (optional)")
    password: str = Field(default="", description="Password (min 6 chars)")
    confirm: str = Field(default="", description="Password confirmation")


class LoginInput(BaseModel):
    """Input schema for /auth/login."""

    user: str = Field(default="", description="Email or 10-digit mobile")
    password: str = Field(default="")


class LogoutResponse(BaseModel):
    success: bool = True


# ============================================================
# Dependencies
# ============================================================

def check_auth_enabled():
    """Raise 503 unless AUTH_ENDPOINTS_ENABLED is on."""
    if not is_auth_endpoints_enabled():
        log.info("Auth endpoints disabled (AUTH_ENDPOINTS_ENABLED=off)")
        raise HTTPException(
            status_code=503,
            detail={
                "error": {
                    "code": "AUTH_DISABLED",
                    "message": "Authentication endpoints are currently disabled",
                }
            },
        )


def get_session_context() -> SessionContext:
    """Session slot for this app's client context."""
    return SessionContext(get_store())


def _raise_for(error: AuthErrorCode) -> None:
    # Authentication failures collapse to one public code
    code = "INVALID_CREDENTIALS" if error.category is ErrorCategory.AUTHENTICATION else error.value
    raise HTTPException(
        status_code=STATUS_BY_CATEGORY[error.category],
        detail={"error": {"code": code, "message": error.message}},
    )


# ============================================================
# Endpoints
# ============================================================

@router.post(
    "/register",
    response_model=AccountResponse,
    status_code=201,
    responses={
        409: {"description": "Email or mobile already registered"},
        422: {"description": "Invalid input"},
        503: {"description": "Storage unavailable or auth disabled"},
    },
    summary="Register",
)
def register_endpoint(
    body: RegisterInput,
    _: None = Depends(check_auth_enabled),
    service: AuthService = Depends(get_auth_service),
) -> AccountResponse:
    result = service.register(
        name=body.name,
        mobile=body.mobile,
        email=body.email,
        city=body.city,
        password=body.password,
        confirm_password=body.confirm,
    )
    if not result.ok:
        _raise_for(result.error)
    return AccountResponse.from_account(result.account)


@router.post(
    "/login",
    response_model=Session,
    responses={
        401: {"description": "Incorrect email/mobile or password"},
        422: {"description": "Missing credentials"},
        503: {"description": "Session could not be stored"},
    },
    summary="Log in",
)
def login_endpoint(
    body: LoginInput,
    _: None = Depends(check_auth_enabled),
    service: AuthService = Depends(get_auth_service),
    context: SessionContext = Depends(get_session_context),
) -> Session:
    result = service.login(body.user, body.password, context)
    if not result.ok:
        _raise_for(result.error)
    return result.session


@router.post(
    "/logout",
    response_model=LogoutResponse,
    responses={503: {"description": "Session could not be cleared"}},
    summary="Log out",
)
def logout_endpoint(
    _: None = Depends(check_auth_enabled),
    service: AuthService = Depends(get_auth_service),
    context: SessionContext = Depends(get_session_context),
) -> LogoutResponse:
    if not service.logout(context):
        _raise_for(AuthErrorCode.STORAGE_UNAVAILABLE)
    return LogoutResponse()


@router.get(
    "/me",
    response_model=Session,
    responses={401: {"description": "Not logged in"}},
    summary="Current session",
)
def me_endpoint(
    _: None = Depends(check_auth_enabled),
    service: AuthService = Depends(get_auth_service),
    context: SessionContext = Depends(get_session_context),
) -> Session:
    session = service.current_session(context)
    if session is None:
        raise HTTPException(
            status_code=401,
            detail={"error": {"code": "NOT_LOGGED_IN", "message": "You are not logged in."}},
        )
    return session


@router.get("/status", response_model=dict, include_in_schema=False)
def auth_status():
    """Internal endpoint to check auth system status."""
    return {
        "auth_enabled": is_auth_endpoints_enabled(),
        "storage": get_store().get_backend_name(),
        "timestamp": datetime.utcnow().isoformat(),
    }
