# lostbuddy/accounts/models.py
"""
Pydantic models for accounts and sessions.

Records:
1. Account — persisted registered user (identity + credential hash)
2. Session — credential-free view of the logged-in account

Wire format (field names are fixed, see db.ACCOUNTS_KEY / CURRENT_SESSION_KEY):
- Account: name, mobile, email, city, passHash, createdAt
- Session: name, email, mobile, city

Also defines the error taxonomy and typed results returned by AuthService.
Nothing in the auth flow raises to the caller; every failure is a result.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ============================================================
# Constants
# ============================================================

MIN_PASSWORD_LENGTH = 6

MOBILE_RE = re.compile(r"[0-9]{10}")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


# ============================================================
# Normalization
# ============================================================

def normalize_email(email: str | None) -> str:
    """Trim and lowercase. Used for both storage keys and lookups."""
    return (email or "").strip().lower()


def normalize_mobile(mobile: str | None) -> str:
    return (mobile or "").strip()


def is_valid_mobile(mobile: str) -> bool:
    """Exactly 10 ASCII digits, nothing else."""
    return MOBILE_RE.fullmatch(mobile) is not None


def is_valid_email(email: str) -> bool:
    """
    Basic local@domain.tld shape check.

    Deliberately loose: no whitespace, exactly one '@', a dot after it.
    """
    return EMAIL_RE.fullmatch(email) is not None


def mask_email(email: str) -> str:
    """Mask email for logging."""
    return email[:3] + "***" if len(email) > 3 else "***"


def mask_mobile(mobile: str) -> str:
    return mobile[:6] + "****" if len(mobile) > 6 else "****"


# ============================================================
# Account & Session
# ============================================================

class Account(BaseModel):
    """A registered user as persisted in the accounts blob."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., min_length=1, description="Display name")
    mobile: str = Field(..., description="10-digit mobile (unique)")
    email: str = Field(..., description="Normalized email (primary key)")
    city: str = Field(default="", description="Free text, optional")
    pass_hash: str = Field(..., alias="passHash", description="SHA-256 hex digest")
    created_at: int = Field(..., alias="createdAt", description="Epoch milliseconds")

    def to_record(self) -> dict:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_record(cls, row: dict) -> "Account":
        return cls.model_validate(row)


class Session(BaseModel):
    """The logged-in identity. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    mobile: str
    city: str = ""

    @classmethod
    def from_account(cls, account: Account) -> "Session":
        return cls(
            name=account.name,
            email=account.email,
            mobile=account.mobile,
            city=account.city,
        )


class AccountResponse(BaseModel):
    """Public-safe account view (no hash)."""

    name: str
    email: str
    mobile: str
    city: str
    created_at: int

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            name=account.name,
            email=account.email,
            mobile=account.mobile,
            city=account.city,
            created_at=account.created_at,
        )


# ============================================================
# Error Taxonomy
# ============================================================

class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    STORAGE = "storage"


class AuthErrorCode(str, Enum):
    # Validation (checked before any store access)
    INVALID_NAME = "INVALID_NAME"
    INVALID_MOBILE = "INVALID_MOBILE"
    INVALID_EMAIL = "INVALID_EMAIL"
    PASSWORD_TOO_SHORT = "PASSWORD_TOO_SHORT"
    PASSWORD_MISMATCH = "PASSWORD_MISMATCH"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    # Conflict
    EMAIL_TAKEN = "EMAIL_TAKEN"
    MOBILE_TAKEN = "MOBILE_TAKEN"
    # Authentication
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    INCORRECT_PASSWORD = "INCORRECT_PASSWORD"
    # Storage
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]

    @property
    def message(self) -> str:
        """User-facing message. Authentication failures share one message."""
        if self.category is ErrorCategory.AUTHENTICATION:
            return INVALID_CREDENTIALS_MESSAGE
        return _MESSAGES[self]


INVALID_CREDENTIALS_MESSAGE = "Incorrect email/mobile or password."

_CATEGORIES = {
    AuthErrorCode.INVALID_NAME: ErrorCategory.VALIDATION,
    AuthErrorCode.INVALID_MOBILE: ErrorCategory.VALIDATION,
    AuthErrorCode.INVALID_EMAIL: ErrorCategory.VALIDATION,
    AuthErrorCode.PASSWORD_TOO_SHORT: ErrorCategory.VALIDATION,
    AuthErrorCode.PASSWORD_MISMATCH: ErrorCategory.VALIDATION,
    AuthErrorCode.MISSING_CREDENTIALS: ErrorCategory.VALIDATION,
    AuthErrorCode.EMAIL_TAKEN: ErrorCategory.CONFLICT,
    AuthErrorCode.MOBILE_TAKEN: ErrorCategory.CONFLICT,
    AuthErrorCode.ACCOUNT_NOT_FOUND: ErrorCategory.AUTHENTICATION,
    AuthErrorCode.INCORRECT_PASSWORD: ErrorCategory.AUTHENTICATION,
    AuthErrorCode.STORAGE_UNAVAILABLE: ErrorCategory.STORAGE,
}

_MESSAGES = {
    AuthErrorCode.INVALID_NAME: "Please enter your name.",
    AuthErrorCode.INVALID_MOBILE: "Enter a valid 10-digit mobile number.",
    AuthErrorCode.INVALID_EMAIL: "Enter a valid email address.",
    AuthErrorCode.PASSWORD_TOO_SHORT: f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
    AuthErrorCode.PASSWORD_MISMATCH: "Passwords do not match.",
    AuthErrorCode.MISSING_CREDENTIALS: "Enter your credentials.",
    AuthErrorCode.EMAIL_TAKEN: "This email is already registered. Please log in.",
    AuthErrorCode.MOBILE_TAKEN: "This mobile is already registered. Please log in.",
    AuthErrorCode.STORAGE_UNAVAILABLE: "Service temporarily unavailable.",
}


# ============================================================
# Results
# ============================================================

class RegistrationResult(BaseModel):
    """Outcome of AuthService.register."""

    ok: bool
    error: Optional[AuthErrorCode] = None
    message: str = ""
    account: Optional[Account] = None

    @classmethod
    def success(cls, account: Account) -> "RegistrationResult":
        return cls(ok=True, message="Account created successfully.", account=account)

    @classmethod
    def failure(cls, error: AuthErrorCode) -> "RegistrationResult":
        return cls(ok=False, error=error, message=error.message)


class LoginResult(BaseModel):
    """Outcome of AuthService.login."""

    ok: bool
    error: Optional[AuthErrorCode] = None
    message: str = ""
    session: Optional[Session] = None

    @classmethod
    def success(cls, session: Session) -> "LoginResult":
        return cls(ok=True, message=f"Welcome, {session.name}", session=session)

    @classmethod
    def failure(cls, error: AuthErrorCode) -> "LoginResult":
        return cls(ok=False, error=error, message=error.message)
