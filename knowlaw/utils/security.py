from __future__ import annotations

import secrets

import bcrypt

_MAX_BCRYPT_BYTES = 72


def _encode(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes; newer releases reject longer input.
    return password.encode("utf-8")[:_MAX_BCRYPT_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


def new_session_token() -> str:
    return secrets.token_urlsafe(32)
