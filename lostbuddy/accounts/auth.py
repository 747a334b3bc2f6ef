# lostbuddy/accounts/auth.py
"""
Registration and login.

This module provides:
- AuthService.register: validate, reject duplicates, hash, persist
- AuthService.login: resolve by email then mobile, verify hash, open session
- AuthService.logout / current_session: session slot helpers
- get_auth_service: singleton wired to the configured store

Registration validation order (first failure wins):
1. name non-empty after trim
2. mobile is exactly 10 digits
3. email has local@domain.tld shape (after trim + lowercase)
4. password at least 6 characters
5. password == confirm_password
6. email not registered
7. mobile not registered

Login never writes to the account store.
"""

from __future__ import annotations

import time
import logging
from typing import Callable, Optional

from lostbuddy.db import get_store
from lostbuddy.accounts.models import (
    MIN_PASSWORD_LENGTH,
    Account,
    AuthErrorCode,
    LoginResult,
    RegistrationResult,
    Session,
    is_valid_email,
    is_valid_mobile,
    mask_email,
    mask_mobile,
    normalize_email,
    normalize_mobile,
)
from lostbuddy.accounts.passwords import hash_password, verify_password
from lostbuddy.accounts.session import SessionContext
from lostbuddy.accounts.store import AccountStore

log = logging.getLogger("lostbuddy.auth")


def _now_ms() -> int:
    return int(time.time() * 1000)


class AuthService:
    """Business logic for account registration and login."""

    def __init__(self, store: AccountStore, clock: Optional[Callable[[], int]] = None):
        self.store = store
        self._clock = clock or _now_ms

    # ============================================================
    # Registration
    # ============================================================

    def _validate_registration(
        self,
        name: str,
        mobile: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> Optional[AuthErrorCode]:
        if not name:
            return AuthErrorCode.INVALID_NAME
        if not is_valid_mobile(mobile):
            return AuthErrorCode.INVALID_MOBILE
        if not is_valid_email(email):
            return AuthErrorCode.INVALID_EMAIL
        if len(password) < MIN_PASSWORD_LENGTH:
            return AuthErrorCode.PASSWORD_TOO_SHORT
        if password != confirm_password:
            return AuthErrorCode.PASSWORD_MISMATCH
        return None

    def register(
        self,
        name: str,
        mobile: str,
        email: str,
        city: str,
        password: str,
        confirm_password: str,
    ) -> RegistrationResult:
        """
        Register a new account.

        Args:
            name: Display name (trimmed).
            mobile: 10-digit mobile number (trimmed).
            email: Email address (trimmed + lowercased before use).
            city: Optional free text (trimmed).
            password: Plaintext password (used as given).
            confirm_password: Must equal password.

        Returns:
            RegistrationResult with the stored Account on success,
            or the first failing AuthErrorCode. The store is never
            written when a check fails.
        """
        name = (name or "").strip()
        mobile = normalize_mobile(mobile)
        email = normalize_email(email)
        city = (city or "").strip()
        password = password or ""
        confirm_password = confirm_password or ""

        error = self._validate_registration(name, mobile, email, password, confirm_password)
        if error is not None:
            log.info("Registration rejected for %s: %s", mask_email(email), error.value)
            return RegistrationResult.failure(error)

        if self.store.exists(email):
            log.info("Registration rejected, email taken: %s", mask_email(email))
            return RegistrationResult.failure(AuthErrorCode.EMAIL_TAKEN)

        if self.store.mobile_exists(mobile):
            log.info("Registration rejected, mobile taken: %s", mask_mobile(mobile))
            return RegistrationResult.failure(AuthErrorCode.MOBILE_TAKEN)

        account = Account(
            name=name,
            mobile=mobile,
            email=email,
            city=city,
            pass_hash=hash_password(password),
            created_at=self._clock(),
        )

        if not self.store.put_if_absent(account):
            # Lost a race with another writer, or the backend refused the write
            if self.store.exists(email):
                return RegistrationResult.failure(AuthErrorCode.EMAIL_TAKEN)
            log.error("Account creation failed for %s", mask_email(email))
            return RegistrationResult.failure(AuthErrorCode.STORAGE_UNAVAILABLE)

        log.info("Account created: %s", mask_email(email))
        return RegistrationResult.success(account)

    # ============================================================
    # Login
    # ============================================================

    def resolve_account(self, identifier: str) -> Optional[Account]:
        """Find an account by email first, then by mobile number."""
        identifier = normalize_email(identifier)
        return self.store.find_by_email(identifier) or self.store.find_by_mobile(identifier)

    def login(self, identifier: str, password: str, context: SessionContext) -> LoginResult:
        """
        Authenticate by email or mobile plus password.

        On success the new Session replaces whatever the context held.
        On failure the context is left untouched.
        """
        identifier = normalize_email(identifier)
        password = password or ""

        if not identifier or not password:
            return LoginResult.failure(AuthErrorCode.MISSING_CREDENTIALS)

        account = self.resolve_account(identifier)
        if account is None:
            log.info("Login failed, no account for %s", mask_email(identifier))
            return LoginResult.failure(AuthErrorCode.ACCOUNT_NOT_FOUND)

        if not verify_password(password, account.pass_hash):
            log.info("Login failed, incorrect password for %s", mask_email(account.email))
            return LoginResult.failure(AuthErrorCode.INCORRECT_PASSWORD)

        session = Session.from_account(account)
        if not context.establish(session):
            return LoginResult.failure(AuthErrorCode.STORAGE_UNAVAILABLE)
        log.info("User logged in: %s", mask_email(account.email))
        return LoginResult.success(session)

    # ============================================================
    # Session
    # ============================================================

    def logout(self, context: SessionContext) -> bool:
        """
        Clear the session. Safe to call when already logged out.

        Returns:
            False if the stored session could not be removed.
        """
        session = context.current
        if not context.clear():
            return False
        if session is not None:
            log.info("User logged out: %s", mask_email(session.email))
        return True

    def current_session(self, context: SessionContext) -> Optional[Session]:
        return context.current


# ============================================================
# Module-level convenience
# ============================================================

_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """
    Get singleton AuthService bound to the configured store.

    Rebuilt whenever the store singleton has been reset, so routes and
    the session slot always share one backend.
    """
    global _auth_service
    store = get_store()
    if _auth_service is None or _auth_service.store.kv is not store:
        _auth_service = AuthService(AccountStore(store))
    return _auth_service


def reset_auth_service() -> None:
    global _auth_service
    _auth_service = None
