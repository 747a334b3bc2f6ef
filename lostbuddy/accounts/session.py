# lostbuddy/accounts/session.py
"""
Session slot for one client context.

A SessionContext is owned by the caller (a request handler, a CLI run,
a test) and passed into AuthService.login/logout/current_session.
At most one session is active per context.

When backed by a KeyValueStore the slot survives restarts under
CURRENT_SESSION_KEY; an unreadable stored session counts as logged out.
establish/clear only change the slot once the backend has accepted the
write, so the in-memory view never disagrees with what is stored.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from lostbuddy.db import CURRENT_SESSION_KEY, KeyValueStore
from lostbuddy.accounts.models import Session, mask_email

log = logging.getLogger("lostbuddy.session")


class SessionContext:
    """Holds the current Session, optionally persisted."""

    def __init__(self, kv: Optional[KeyValueStore] = None, key: str = CURRENT_SESSION_KEY):
        self._kv = kv
        self._key = key
        self._session: Optional[Session] = None
        self._loaded = kv is None

    def _load(self) -> Optional[Session]:
        raw = self._kv.get(self._key)
        if not raw:
            return None
        try:
            return Session.model_validate(json.loads(raw))
        except (ValueError, RecursionError) as e:
            log.warning("Stored session is corrupt, treating as logged out: %s", str(e)[:100])
            return None

    @property
    def current(self) -> Optional[Session]:
        if not self._loaded:
            self._session = self._load()
            self._loaded = True
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self.current is not None

    def establish(self, session: Session) -> bool:
        """
        Replace whatever session is active with this one.

        Returns:
            False if the backend refused the write; the previous
            session (if any) stays active.
        """
        if self._kv is not None:
            if not self._kv.set(self._key, json.dumps(session.model_dump())):
                log.error("Failed to persist session for %s", mask_email(session.email))
                return False
        self._session = session
        self._loaded = True
        return True

    def clear(self) -> bool:
        """
        Drop the active session. No-op when logged out.

        Returns:
            False if the backend could not remove the stored session;
            the session stays active in that case.
        """
        if self._kv is not None:
            if not self._kv.remove(self._key):
                log.error("Failed to remove stored session")
                self._loaded = False
                return False
        self._session = None
        self._loaded = True
        return True
