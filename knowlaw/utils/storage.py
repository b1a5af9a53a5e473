from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from threading import Lock
from typing import Any, Iterator

from knowlaw.utils.errors import StorageUnavailable
from knowlaw.utils.logging import get_logger

log = get_logger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS conversations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        owner_id TEXT NOT NULL,
        title TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        conversation_id INTEGER NOT NULL,
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        file_info_json TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS bookings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        owner_id TEXT NOT NULL,
        lawyer_id INTEGER NOT NULL,
        lawyer_name TEXT NOT NULL,
        lawyer_specialty TEXT NOT NULL,
        client_name TEXT NOT NULL,
        client_email TEXT NOT NULL,
        client_phone TEXT NOT NULL,
        appointment_date TEXT NOT NULL,
        appointment_time TEXT NOT NULL,
        case_description TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_conversations_owner_id ON conversations(owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_messages_conversation_id ON messages(conversation_id)",
)


def now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="microseconds")


def parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return datetime.now(UTC)
    return datetime.now(UTC)


def json_dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def json_loads(value: str | None, default: Any) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return default


class Database:
    """SQLite file holding users, conversations, messages and bookings.

    Each ``connect()`` block is one transaction: it commits when the block
    exits normally and rolls back on any exception, so a multi-statement
    mutation either lands completely or not at all. Concurrent writers are
    serialised by SQLite itself.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._ready = False
        self._ready_lock = Lock()

    def _open(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def initialize(self) -> None:
        with self._ready_lock:
            if self._ready:
                return
            try:
                conn = self._open()
                try:
                    for statement in _SCHEMA:
                        conn.execute(statement)
                    conn.commit()
                finally:
                    conn.close()
            except (sqlite3.Error, OSError) as exc:
                log.error("database_init_failed", path=str(self.path), error=str(exc))
                raise StorageUnavailable() from exc
            self._ready = True
            log.info("database_ready", path=str(self.path))

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self.initialize()
        try:
            conn = self._open()
        except (sqlite3.Error, OSError) as exc:
            log.error("database_connect_failed", path=str(self.path), error=str(exc))
            raise StorageUnavailable() from exc
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            log.error("database_statement_failed", path=str(self.path), error=str(exc))
            raise StorageUnavailable() from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def count(self, table: str) -> int:
        if table not in {"users", "conversations", "messages", "bookings"}:
            raise ValueError(f"Unknown table: {table}")
        with self.connect() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS count FROM {table}").fetchone()
        if row is None:
            return 0
        return int(row["count"] or 0)
