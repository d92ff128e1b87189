"""Password hashing helpers built on passlib.

- hash_password(plain) -> str
- verify_password(plain, hashed) -> bool

bcrypt is preferred. Its cost can be set with the ``BCRYPT_ROUNDS``
environment variable. When the installed bcrypt backend cannot be used by
passlib, pbkdf2_sha256 (also salted, also from passlib) is used instead, and
the same ``BCRYPT_ROUNDS`` value is ignored for it.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from passlib.context import CryptContext

logger = logging.getLogger(__name__)


def _rounds_from_env() -> Optional[int]:
    raw = os.environ.get("BCRYPT_ROUNDS")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _build_context() -> CryptContext:
    rounds = _rounds_from_env()
    try:
        if rounds:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        else:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
        # forces passlib to load and self-test the backend now rather than on first login
        ctx.hash("bcrypt-self-check")
        return ctx
    except Exception as exc:  # backend missing or incompatible with passlib
        logger.warning("bcrypt backend unavailable (%s); using pbkdf2_sha256", exc)
        return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


pwd_context = _build_context()

# checked against when the account does not exist, so both login failures cost one verify
DUMMY_HASH = pwd_context.hash("blocknotes-no-such-account")


def hash_password(plain: str) -> str:
    """Hash a plaintext password and return the encoded hash string."""
    if plain is None:
        raise ValueError("Password must not be None")
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    if plain is None or hashed is None:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # unknown or corrupt hash format
        return False
