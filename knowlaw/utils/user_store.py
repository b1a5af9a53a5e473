from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime

from knowlaw.utils.errors import EmailTaken, StorageUnavailable, ValidationError
from knowlaw.utils.logging import get_logger
from knowlaw.utils.security import hash_password, verify_password
from knowlaw.utils.storage import Database, now_iso, parse_datetime

MIN_PASSWORD_LENGTH = 6

log = get_logger(__name__)


@dataclass(frozen=True)
class UserAccount:
    user_id: int
    name: str
    email: str
    created_at: datetime


def _is_unique_violation(exc: BaseException) -> bool:
    return isinstance(exc.__cause__, sqlite3.IntegrityError)


def _row_to_user(row) -> UserAccount:
    return UserAccount(
        user_id=int(row["id"]),
        name=row["name"],
        email=row["email"],
        created_at=parse_datetime(row["created_at"]),
    )


def validate_registration(name: str, email: str, password: str, confirm_password: str) -> None:
    if not name.strip() or not email.strip() or not password or not confirm_password:
        raise ValidationError("All fields are required")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class UserStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def get_by_id(self, user_id: int) -> UserAccount | None:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> UserAccount | None:
        # Exact, case-sensitive match.
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email.strip(),)).fetchone()
        return _row_to_user(row) if row else None

    def create_user(self, name: str, email: str, password: str, confirm_password: str) -> UserAccount:
        validate_registration(name, email, password, confirm_password)
        normalized_email = email.strip()
        password_hash = hash_password(password)
        try:
            with self.db.connect() as conn:
                existing = conn.execute("SELECT 1 FROM users WHERE email = ?", (normalized_email,)).fetchone()
                if existing:
                    log.info("register_email_taken")
                    raise EmailTaken()
                cursor = conn.execute(
                    "INSERT INTO users (name, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                    (name.strip(), normalized_email, password_hash, now_iso()),
                )
                row = conn.execute("SELECT * FROM users WHERE id = ?", (cursor.lastrowid,)).fetchone()
        except StorageUnavailable as exc:
            # Lost a race with a concurrent registration for the same email.
            if _is_unique_violation(exc):
                raise EmailTaken() from exc
            raise
        user = _row_to_user(row)
        log.info("user_registered", user_id=user.user_id)
        return user

    def authenticate(self, email: str, password: str) -> UserAccount | None:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email.strip(),)).fetchone()
        if row is None:
            return None
        if not verify_password(password, row["password_hash"]):
            return None
        return _row_to_user(row)

    def count(self) -> int:
        return self.db.count("users")
