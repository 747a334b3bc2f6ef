# lostbuddy/accounts/__init__.py
"""
Lost Buddy Accounts Package

This package provides:
- Account registration with duplicate email/mobile checks
- Login by email or mobile plus password
- Caller-owned session slot (SessionContext)
- FastAPI routes for /auth/*

Submodules:
- models: Account, Session, error codes, typed results
- passwords: SHA-256 hashing and verification
- store: AccountStore over a KeyValueStore
- session: SessionContext
- auth: AuthService
- auth_routes: FastAPI routes for /auth/*
"""

from __future__ import annotations

__all__ = [
    # Models
    "Account",
    "Session",
    "AccountResponse",
    "AuthErrorCode",
    "ErrorCategory",
    "RegistrationResult",
    "LoginResult",
    # Passwords
    "hash_password",
    "verify_password",
    # Store / session
    "AccountStore",
    "SessionContext",
    # Auth
    "AuthService",
    "get_auth_service",
    # Routes
    "auth_router",
]


# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    """Lazy import pattern for clean module loading."""

    if name in ("Account", "Session", "AccountResponse", "AuthErrorCode",
                "ErrorCategory", "RegistrationResult", "LoginResult"):
        from . import models
        return getattr(models, name)

    if name in ("hash_password", "verify_password"):
        from . import passwords
        return getattr(passwords, name)

    if name == "AccountStore":
        from .store import AccountStore
        return AccountStore

    if name == "SessionContext":
        from .session import SessionContext
        return SessionContext

    if name in ("AuthService", "get_auth_service"):
        from . import auth
        return getattr(auth, name)

    if name == "auth_router":
        from .auth_routes import router
        return router

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
