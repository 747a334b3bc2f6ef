# lostbuddy/accounts/store.py
"""
Account persistence on top of a KeyValueStore.

The whole collection lives in one JSON blob under ACCOUNTS_KEY,
keyed by normalized email. Every call reads (and writes) the full blob;
fine for a small single-writer dataset.

Corrupt data:
- Unparseable blob or non-object JSON -> treated as no accounts (logged)
- Individual records failing validation -> skipped (logged)
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Optional

from pydantic import ValidationError

from lostbuddy.db import ACCOUNTS_KEY, KeyValueStore
from lostbuddy.accounts.models import Account, normalize_email, normalize_mobile, mask_email

log = logging.getLogger("lostbuddy.store")


class AccountStore:
    """
    Durable, queryable collection of Accounts.

    Exposes the whole-collection pair (load_all/save_all) and per-key
    operations (get/exists/put_if_absent) so callers never depend on
    the blob layout.
    """

    def __init__(self, kv: KeyValueStore, key: str = ACCOUNTS_KEY):
        self._kv = kv
        self._key = key

    @property
    def kv(self) -> KeyValueStore:
        return self._kv

    # --------------------------------------------------------
    # Whole collection
    # --------------------------------------------------------

    def load_all(self) -> Dict[str, Account]:
        """Return every account keyed by normalized email. Never raises."""
        raw = self._kv.get(self._key)
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            log.warning("Accounts blob is corrupt, treating as empty: %s", str(e)[:100])
            return {}

        if not isinstance(data, dict):
            log.warning("Accounts blob is not an object (%s), treating as empty", type(data).__name__)
            return {}

        accounts: Dict[str, Account] = {}
        for email, row in data.items():
            key = normalize_email(email)
            if key in accounts:
                log.warning("Duplicate account key %s in blob, keeping the first record", mask_email(key))
                continue
            try:
                accounts[key] = Account.from_record(row)
            except (ValidationError, TypeError) as e:
                log.warning("Skipping malformed account record %s: %s", mask_email(str(email)), str(e)[:100])
        return accounts

    def save_all(self, accounts: Dict[str, Account]) -> bool:
        """Replace the persisted collection. Returns False if the backend failed."""
        payload = {email: account.to_record() for email, account in accounts.items()}
        saved = self._kv.set(self._key, json.dumps(payload))
        if not saved:
            log.error("Failed to persist %d accounts", len(payload))
        return saved

    # --------------------------------------------------------
    # Lookups
    # --------------------------------------------------------

    def find_by_email(self, email: str) -> Optional[Account]:
        return self.load_all().get(normalize_email(email))

    def find_by_mobile(self, mobile: str) -> Optional[Account]:
        """Linear scan; first match wins."""
        mobile = normalize_mobile(mobile)
        for account in self.load_all().values():
            if account.mobile == mobile:
                return account
        return None

    # --------------------------------------------------------
    # Per-key operations
    # --------------------------------------------------------

    def get(self, email: str) -> Optional[Account]:
        return self.find_by_email(email)

    def exists(self, email: str) -> bool:
        return normalize_email(email) in self.load_all()

    def mobile_exists(self, mobile: str) -> bool:
        return self.find_by_mobile(mobile) is not None

    def put_if_absent(self, account: Account) -> bool:
        """
        Insert account unless its email key is already present.

        Returns:
            True if inserted and persisted, False if the key exists
            or the backend write failed.
        """
        accounts = self.load_all()
        key = normalize_email(account.email)
        if key in accounts:
            return False
        accounts[key] = account
        return self.save_all(accounts)

    def count(self) -> int:
        return len(self.load_all())
