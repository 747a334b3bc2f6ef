# lostbuddy/accounts/passwords.py
"""
Password hashing.

Security:
- SHA-256 over the UTF-8 plaintext, lowercase hex (64 chars)
- Plaintext is never stored or logged
- Constant-time comparison on verify

Encoding matches a browser TextEncoder: unpaired surrogates become U+FFFD,
so any str hashes and digests agree with records written by the web client.

Known weakness: no per-account salt and no key stretching. Identical
passwords produce identical digests. Kept for compatibility with the
existing accounts blob; a hardened deployment should move to a salted KDF.
"""

from __future__ import annotations

import hmac
from hashlib import sha256

HASH_HEX_LENGTH = 64


def encode_utf8(text: str) -> bytes:
    """UTF-8 encode, replacing unpaired surrogates with U+FFFD."""
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace").encode("utf-8")


def hash_password(password: str) -> str:
    """
    Hash password with SHA-256.

    Args:
        password: Plaintext password.

    Returns:
        Hexadecimal SHA-256 hash.
    """
    return sha256(encode_utf8(password)).hexdigest()


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against stored hash (constant-time comparison)."""
    computed = hash_password(password)
    return hmac.compare_digest(computed.encode("utf-8"), encode_utf8(password_hash))
