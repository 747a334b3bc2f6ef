# tests/test_store.py
"""
AccountStore tests.

Tests for:
- load_all / save_all round trip with wire field names
- Corrupt or partial data treated as empty (fail-open to empty)
- Lookups by email (case-insensitive) and mobile
- put_if_absent semantics
"""

import json
import logging

from lostbuddy.db import ACCOUNTS_KEY
from lostbuddy.accounts.models import Account, AuthErrorCode
from lostbuddy.accounts.passwords import hash_password


def _account(email="asha@test.com", mobile="9876543210", name="Asha Rao"):
    return Account(
        name=name,
        mobile=mobile,
        email=email,
        city="Pune",
        pass_hash=hash_password("secret1"),
        created_at=1_700_000_000_000,
    )


class TestLoadSave:
    """Tests for the whole-collection primitives."""

    def test_empty_store(self, account_store):
        assert account_store.load_all() == {}

    def test_round_trip(self, account_store, kv):
        account = _account()
        assert account_store.save_all({account.email: account}) is True

        assert account_store.load_all() == {"asha@test.com": account}
        record = json.loads(kv.get(ACCOUNTS_KEY))["asha@test.com"]
        assert record["passHash"] == account.pass_hash
        assert record["createdAt"] == 1_700_000_000_000

    def test_save_all_replaces_contents(self, account_store):
        first, second = _account(), _account("ravi@example.com", "9123456780", "Ravi")
        account_store.save_all({first.email: first})
        account_store.save_all({second.email: second})
        assert list(account_store.load_all()) == ["ravi@example.com"]

    def test_reads_records_written_by_browser_client(self, account_store, kv):
        """Blob written by the browser client (camelCase field names) loads as-is."""
        kv.set(ACCOUNTS_KEY, json.dumps({
            "asha@test.com": {
                "name": "Asha Rao", "mobile": "9876543210", "email": "asha@test.com",
                "city": "Pune", "passHash": hash_password("secret1"), "createdAt": 1699999999999,
            }
        }))
        account = account_store.find_by_email("asha@test.com")
        assert account.pass_hash == hash_password("secret1")
        assert account.created_at == 1699999999999


class TestCorruptData:
    """Corrupt data is logged and treated as no accounts."""

    def test_unparseable_blob(self, account_store, kv, caplog):
        kv.set(ACCOUNTS_KEY, "{not json")
        with caplog.at_level(logging.WARNING, logger="lostbuddy.store"):
            assert account_store.load_all() == {}
        assert "corrupt" in caplog.text

    def test_non_object_blob(self, account_store, kv):
        kv.set(ACCOUNTS_KEY, json.dumps(["a", "b"]))
        assert account_store.load_all() == {}

    def test_malformed_record_skipped(self, account_store, kv):
        good = _account()
        kv.set(ACCOUNTS_KEY, json.dumps({
            good.email: good.to_record(),
            "broken@test.com": {"name": "No Hash"},
            "junk@test.com": "string",
        }))
        assert list(account_store.load_all()) == ["asha@test.com"]

    def test_deeply_nested_blob(self, account_store, kv, caplog):
        kv.set(ACCOUNTS_KEY, "[" * 200_000)
        with caplog.at_level(logging.WARNING, logger="lostbuddy.store"):
            assert account_store.load_all() == {}
        assert "corrupt" in caplog.text

    def test_login_over_deeply_nested_blob(self, service, kv, context):
        kv.set(ACCOUNTS_KEY, "{\"a\": " * 100_000)
        result = service.login("asha@test.com", "secret1", context)
        assert result.error is AuthErrorCode.ACCOUNT_NOT_FOUND

    def test_keys_differing_in_case_keep_first_record(self, account_store, kv, caplog):
        first = _account()
        second = _account(name="Someone Else")
        kv.set(ACCOUNTS_KEY, json.dumps({
            "asha@test.com": first.to_record(),
            "ASHA@test.com": second.to_record(),
        }))

        with caplog.at_level(logging.WARNING, logger="lostbuddy.store"):
            accounts = account_store.load_all()

        assert accounts == {"asha@test.com": first}
        assert "Duplicate account key" in caplog.text
        assert "asha@test.com" not in caplog.text

    def test_register_over_corrupt_blob(self, service, kv, asha):
        """Registration proceeds as if the store were empty."""
        kv.set(ACCOUNTS_KEY, "garbage")
        assert service.register(**asha).ok
        assert list(json.loads(kv.get(ACCOUNTS_KEY))) == ["asha@test.com"]


class TestLookups:
    """Tests for find_by_email / find_by_mobile and per-key operations."""

    def test_find_by_email_normalizes(self, account_store):
        account = _account()
        account_store.save_all({account.email: account})
        assert account_store.find_by_email("  ASHA@Test.com ") == account
        assert account_store.get("asha@test.com") == account

    def test_find_missing(self, account_store):
        assert account_store.find_by_email("nobody@test.com") is None
        assert account_store.find_by_mobile("9000000000") is None

    def test_find_by_mobile(self, account_store):
        account = _account()
        account_store.save_all({account.email: account})
        assert account_store.find_by_mobile("9876543210") == account
        assert account_store.mobile_exists("9876543210") is True
        assert account_store.mobile_exists("9876543211") is False

    def test_exists(self, account_store):
        account = _account()
        account_store.save_all({account.email: account})
        assert account_store.exists("Asha@Test.com") is True
        assert account_store.exists("other@test.com") is False

    def test_put_if_absent(self, account_store):
        assert account_store.put_if_absent(_account()) is True
        assert account_store.put_if_absent(_account(name="Imposter")) is False
        assert account_store.find_by_email("asha@test.com").name == "Asha Rao"
        assert account_store.count() == 1
