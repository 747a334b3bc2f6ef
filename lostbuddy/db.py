# lostbuddy/db.py
"""
Key-value storage backends and configuration.

This module provides:
- Feature flag and configuration getters (environment driven)
- KeyValueStore interface holding opaque string blobs under well-known keys
- Memory, file and Supabase implementations
- Singleton store accessor with reset for tests

Well-known keys:
- lb_accounts: serialized mapping of normalized email -> account record
- lb_current: serialized session record (absent when logged out)

Environment Variables:
- STORAGE_BACKEND: memory (default), file, supabase
- STORAGE_DIR: directory for the file backend (default: ./.lostbuddy)
- SUPABASE_URL / SUPABASE_KEY: Supabase project credentials
- SUPABASE_KV_TABLE: key/value table name (default: kv_store)

Feature Flags:
- AUTH_ENDPOINTS_ENABLED: Enable /auth/* routes (default: on)
"""

from __future__ import annotations

import os
import re
import logging
from hashlib import sha256
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional
from functools import lru_cache

log = logging.getLogger("lostbuddy.db")

# ============================================================
# Well-known Keys
# ============================================================

ACCOUNTS_KEY = "lb_accounts"
CURRENT_SESSION_KEY = "lb_current"


# ============================================================
# Feature Flags
# ============================================================

def _flag_on(name: str, default: str = "off") -> bool:
    """Check if a feature flag is enabled."""
    val = os.getenv(name, default).lower()
    return val in ("on", "true", "1", "yes")


def is_auth_endpoints_enabled() -> bool:
    """Check if auth endpoints (/auth/register, /auth/login, ...) are enabled."""
    return _flag_on("AUTH_ENDPOINTS_ENABLED", default="on")


# ============================================================
# Configuration
# ============================================================

def get_storage_backend() -> str:
    """Get configured storage backend name."""
    return os.getenv("STORAGE_BACKEND", "memory").strip().lower() or "memory"


def get_storage_dir() -> Path:
    """Get directory used by the file backend."""
    return Path(os.getenv("STORAGE_DIR", ".lostbuddy").strip() or ".lostbuddy")


def _get_supabase_url() -> str:
    url = os.getenv("SUPABASE_URL", "").strip()
    if not url:
        log.warning("SUPABASE_URL not set - database operations will fail")
    return url


def _get_supabase_key() -> str:
    key = os.getenv("SUPABASE_KEY", "").strip()
    if not key:
        log.warning("SUPABASE_KEY not set - database operations will fail")
    return key


def get_kv_table() -> str:
    return os.getenv("SUPABASE_KV_TABLE", "kv_store").strip() or "kv_store"


# ============================================================
# Key-Value Interface
# ============================================================

class KeyValueStore(ABC):
    """
    Blob storage keyed by string.

    Values are opaque strings; parsing is the caller's concern.
    Reads return None when the key is absent or the backend fails.
    Writes return False on backend failure.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend name for logging and health checks."""
        pass


class MemoryKeyValueStore(KeyValueStore):
    """In-process store. Contents are lost on restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    def get_backend_name(self) -> str:
        return "memory"


_SAFE_KEY = re.compile(r"[^A-Za-z0-9_-]+")


class FileKeyValueStore(KeyValueStore):
    """
    One file per key under a base directory.

    Writes go to a temporary sibling first and are moved into place,
    so a reader never sees a half-written blob.
    """

    def __init__(self, base_dir: str | Path):
        self._base = Path(base_dir)

    def _path(self, key: str) -> Path:
        safe = _SAFE_KEY.sub("_", key).strip("_") or "blob"
        if safe != key:
            # Rewritten keys get a digest suffix so distinct keys never share a file
            digest = sha256(key.encode("utf-8", "surrogatepass")).hexdigest()[:12]
            safe = f"{safe}-{digest}"
        return self._base / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            log.error("Failed to read %s: %s", path, str(e)[:100])
            return None

    def set(self, key: str, value: str) -> bool:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self._base.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
            return True
        except OSError as e:
            log.error("Failed to write %s: %s", path, str(e)[:100])
            return False

    def remove(self, key: str) -> bool:
        try:
            self._path(key).unlink(missing_ok=True)
            return True
        except OSError as e:
            log.error("Failed to remove key %s: %s", key, str(e)[:100])
            return False

    def get_backend_name(self) -> str:
        return "file"


class SupabaseKeyValueStore(KeyValueStore):
    """
    Key-value rows in a Supabase table.

    Expected table shape: key text primary key, value text.
    """

    def __init__(self, client, table: Optional[str] = None):
        self._client = client
        self._table = table or get_kv_table()

    def get(self, key: str) -> Optional[str]:
        try:
            result = self._client.table(self._table)\
                .select("value")\
                .eq("key", key)\
                .limit(1)\
                .execute()

            if result.data:
                return result.data[0].get("value")
            return None
        except Exception as e:
            log.error("Supabase read failed for %s: %s", key, str(e)[:100])
            return None

    def set(self, key: str, value: str) -> bool:
        try:
            self._client.table(self._table)\
                .upsert({"key": key, "value": value})\
                .execute()
            return True
        except Exception as e:
            log.error("Supabase write failed for %s: %s", key, str(e)[:100])
            return False

    def remove(self, key: str) -> bool:
        try:
            self._client.table(self._table)\
                .delete()\
                .eq("key", key)\
                .execute()
            return True
        except Exception as e:
            log.error("Supabase delete failed for %s: %s", key, str(e)[:100])
            return False

    def get_backend_name(self) -> str:
        return "supabase"


# ============================================================
# Supabase Client
# ============================================================

@lru_cache(maxsize=1)
def get_supabase_client():
    """
    Get singleton Supabase client instance.

    Returns:
        Supabase client or None if not configured.
    """
    url = _get_supabase_url()
    key = _get_supabase_key()

    if not url or not key:
        log.error("Supabase credentials not configured")
        return None

    try:
        from supabase import create_client
        client = create_client(url, key)
        log.info("Supabase client initialized successfully")
        return client
    except Exception as e:
        log.error("Failed to initialize Supabase client: %s", str(e)[:100])
        return None


# ============================================================
# Store Factory
# ============================================================

def create_store(backend: Optional[str] = None) -> KeyValueStore:
    """
    Build a store for the given backend name.

    Unknown names and an unconfigured Supabase fall back to memory.
    """
    backend = (backend or get_storage_backend()).lower()

    if backend == "file":
        return FileKeyValueStore(get_storage_dir())
    if backend == "supabase":
        client = get_supabase_client()
        if client is not None:
            return SupabaseKeyValueStore(client)
        log.warning("Supabase unavailable, falling back to memory store")
        return MemoryKeyValueStore()
    if backend != "memory":
        log.warning("Unknown STORAGE_BACKEND '%s', falling back to memory", backend)
    return MemoryKeyValueStore()


_store: Optional[KeyValueStore] = None


def get_store() -> KeyValueStore:
    """Get singleton store instance."""
    global _store
    if _store is None:
        _store = create_store()
        log.info("Storage backend: %s", _store.get_backend_name())
    return _store


def reset_store() -> None:
    """Drop the singleton so the next get_store() re-reads configuration."""
    global _store
    _store = None
    get_supabase_client.cache_clear()


def check_store_health() -> dict:
    """Storage status for the /health endpoint."""
    store = get_store()
    return {"storage": store.get_backend_name()}
