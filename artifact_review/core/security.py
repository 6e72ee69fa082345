from __future__ import annotations

import hashlib
import re
import secrets
import string
from dataclasses import dataclass
from typing import NewType

import bcrypt

UserId = NewType("UserId", str)

MIN_PASSWORD_LENGTH = 8
BCRYPT_MAX_BYTES = 72

SHARE_TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"

_DIGIT = re.compile(r"\d")
_LETTER = re.compile(r"[a-zA-Z]")


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, resolved once at the HTTP boundary."""

    user_id: UserId
    session_id: str | None = None


def password_problem(password: str) -> str | None:
    """Return the first failing password rule, checked in a fixed order."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not _DIGIT.search(password):
        return "Password must contain a number"
    if not _LETTER.search(password):
        return "Password must contain a letter"
    return None


def _secret_bytes(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes and newer releases reject longer input.
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_secret_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_secret_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


def new_bearer_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def new_share_token(length: int) -> str:
    return "".join(secrets.choice(SHARE_TOKEN_ALPHABET) for _ in range(length))
