"""
security helpers:
- Argon2 password hashing via argon2-cffi (slow, salted)
- SHA-256 hashing of refresh tokens for storage (fast, deterministic, so
  rows can be looked up by hash)
"""
from __future__ import annotations

import hashlib

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

_dummy_hash = None


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def burn_password_check(password: str) -> None:
    """Run one argon2 verification against a throwaway hash.

    Used when the account does not exist, so an unknown email costs the same
    as a wrong password.
    """
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = ph.hash("not-a-real-password")
    verify_password(password, _dummy_hash)


def hash_token(token: str) -> str:
    """Hex SHA-256 of a bearer token, the only form of it we persist."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
