# tests/test_models.py
"""
Model and normalization tests.
"""

import pytest
from pydantic import ValidationError

from lostbuddy.accounts.models import (
    Account,
    AuthErrorCode,
    ErrorCategory,
    INVALID_CREDENTIALS_MESSAGE,
    Session,
    is_valid_email,
    is_valid_mobile,
    mask_email,
    normalize_email,
)


class TestNormalization:

    def test_normalize_email(self):
        assert normalize_email("  Asha@Test.COM ") == "asha@test.com"
        assert normalize_email(None) == ""

    @pytest.mark.parametrize("email,ok", [
        ("asha@test.com", True),
        ("a.b+tag@sub.domain.in", True),
        ("asha@test", False),
        ("@test.com", False),
        ("asha@.com", False),
        ("asha@test.com\n", False),
        ("", False),
    ])
    def test_email_shape(self, email, ok):
        assert is_valid_email(email) is ok

    @pytest.mark.parametrize("mobile,ok", [
        ("9876543210", True),
        ("0000000000", True),
        ("987654321", False),
        ("9876543210\n", False),
        ("+919876543210", False),
        ("98765 43210", False),
    ])
    def test_mobile_shape(self, mobile, ok):
        assert is_valid_mobile(mobile) is ok

    def test_mask_email(self):
        assert mask_email("asha@test.com") == "ash***"
        assert mask_email("a@b") == "***"


class TestAccount:

    def test_wire_names(self):
        account = Account(
            name="Asha Rao", mobile="9876543210", email="asha@test.com",
            city="Pune", pass_hash="ab" * 32, created_at=1,
        )
        assert account.to_record() == {
            "name": "Asha Rao", "mobile": "9876543210", "email": "asha@test.com",
            "city": "Pune", "passHash": "ab" * 32, "createdAt": 1,
        }

    def test_account_is_immutable(self):
        account = Account.from_record({
            "name": "Asha", "mobile": "9876543210", "email": "asha@test.com",
            "passHash": "x", "createdAt": 1,
        })
        with pytest.raises(ValidationError):
            account.name = "Changed"

    def test_session_from_account(self):
        account = Account(
            name="Asha", mobile="9876543210", email="asha@test.com",
            city="", pass_hash="x", created_at=1,
        )
        assert Session.from_account(account) == Session(
            name="Asha", email="asha@test.com", mobile="9876543210", city="",
        )


class TestErrorCodes:

    def test_every_code_has_category_and_message(self):
        for code in AuthErrorCode:
            assert isinstance(code.category, ErrorCategory)
            assert code.message

    def test_authentication_message_unified(self):
        assert AuthErrorCode.ACCOUNT_NOT_FOUND.message == INVALID_CREDENTIALS_MESSAGE
        assert AuthErrorCode.INCORRECT_PASSWORD.message == INVALID_CREDENTIALS_MESSAGE

    def test_conflict_codes(self):
        assert AuthErrorCode.EMAIL_TAKEN.category is ErrorCategory.CONFLICT
        assert AuthErrorCode.MOBILE_TAKEN.category is ErrorCategory.CONFLICT
