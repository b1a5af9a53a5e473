from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Callable, Iterable, List

from knowlaw.schemas.models import Conversation, FileInfo, Message, OwnerRef
from knowlaw.utils.errors import EmptyContent, EmptyTitle, NotEditable, NotFound
from knowlaw.utils.logging import get_logger
from knowlaw.utils.storage import Database, json_dumps, json_loads, parse_datetime

DEFAULT_TITLE = "New Chat"
TITLE_FROM_MESSAGE_CHARS = 50

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
_ROLES = {ROLE_USER, ROLE_ASSISTANT}

Clock = Callable[[], datetime]

log = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def derive_title(message: str) -> str:
    text = (message or "").strip()
    if not text:
        return DEFAULT_TITLE
    return text[:TITLE_FROM_MESSAGE_CHARS]


def _row_to_conversation(row: sqlite3.Row) -> Conversation:
    return Conversation(
        id=int(row["id"]),
        title=row["title"],
        created_at=parse_datetime(row["created_at"]),
        updated_at=parse_datetime(row["updated_at"]),
    )


def _row_to_message(row: sqlite3.Row) -> Message:
    return Message(
        id=int(row["id"]),
        conversation_id=int(row["conversation_id"]),
        role=row["role"],
        content=row["content"],
        file_info=[FileInfo.model_validate(item) for item in json_loads(row["file_info_json"], [])],
        created_at=parse_datetime(row["created_at"]),
        updated_at=parse_datetime(row["updated_at"]),
    )


class ConversationStore:
    """Owner-scoped conversations and their message logs.

    Every method takes the caller's ``OwnerRef`` and resolves the conversation
    with ``owner_id`` in the WHERE clause, so a conversation that belongs to
    somebody else is indistinguishable from one that does not exist. Message
    mutations bump the parent ``updated_at`` inside the same transaction.
    """

    def __init__(self, db: Database, *, clock: Clock | None = None) -> None:
        self.db = db
        self._clock = clock or _utc_now

    def _now(self) -> str:
        return self._clock().isoformat(timespec="microseconds")

    def _owned_row(self, conn: sqlite3.Connection, owner: OwnerRef, conversation_id: int) -> sqlite3.Row:
        row = conn.execute(
            "SELECT * FROM conversations WHERE id = ? AND owner_id = ?",
            (conversation_id, owner.storage_key()),
        ).fetchone()
        if row is None:
            raise NotFound("Conversation not found")
        return row

    def _touch(self, conn: sqlite3.Connection, conversation_id: int, stamp: str) -> None:
        conn.execute("UPDATE conversations SET updated_at = ? WHERE id = ?", (stamp, conversation_id))

    # Conversations

    def create(self, owner: OwnerRef, title: str | None = None) -> Conversation:
        cleaned = (title or "").strip() or DEFAULT_TITLE
        now = self._now()
        with self.db.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO conversations (owner_id, title, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (owner.storage_key(), cleaned, now, now),
            )
            row = conn.execute("SELECT * FROM conversations WHERE id = ?", (cursor.lastrowid,)).fetchone()
        conversation = _row_to_conversation(row)
        log.info("conversation_created", conversation_id=conversation.id, owner_id=owner.storage_key())
        return conversation

    def list(self, owner: OwnerRef) -> List[Conversation]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM conversations WHERE owner_id = ? ORDER BY updated_at DESC, id DESC",
                (owner.storage_key(),),
            ).fetchall()
        return [_row_to_conversation(row) for row in rows]

    def get(self, owner: OwnerRef, conversation_id: int) -> Conversation:
        with self.db.connect() as conn:
            row = self._owned_row(conn, owner, conversation_id)
        return _row_to_conversation(row)

    def rename(self, owner: OwnerRef, conversation_id: int, title: str) -> Conversation:
        cleaned = (title or "").strip()
        if not cleaned:
            raise EmptyTitle()
        with self.db.connect() as conn:
            self._owned_row(conn, owner, conversation_id)
            conn.execute(
                "UPDATE conversations SET title = ?, updated_at = ? WHERE id = ?",
                (cleaned, self._now(), conversation_id),
            )
            row = conn.execute("SELECT * FROM conversations WHERE id = ?", (conversation_id,)).fetchone()
        return _row_to_conversation(row)

    def delete(self, owner: OwnerRef, conversation_id: int) -> None:
        with self.db.connect() as conn:
            self._owned_row(conn, owner, conversation_id)
            # Messages go with it through ON DELETE CASCADE.
            conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))
        log.info("conversation_deleted", conversation_id=conversation_id, owner_id=owner.storage_key())

    # Messages

    def append_message(
        self,
        owner: OwnerRef,
        conversation_id: int,
        role: str,
        content: str,
        file_info: Iterable[FileInfo] | None = None,
    ) -> Message:
        if role not in _ROLES:
            raise ValueError(f"Unsupported message role: {role}")
        files = [item.model_dump() for item in (file_info or [])]
        with self.db.connect() as conn:
            self._owned_row(conn, owner, conversation_id)
            now = self._clock()
            latest = conn.execute(
                "SELECT MAX(created_at) AS latest FROM messages WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchone()
            if latest is not None and latest["latest"]:
                now = max(now, parse_datetime(latest["latest"]))
            stamp = now.isoformat(timespec="microseconds")
            cursor = conn.execute(
                """
                INSERT INTO messages (conversation_id, role, content, file_info_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (conversation_id, role, content, json_dumps(files) if files else None, stamp, stamp),
            )
            self._touch(conn, conversation_id, stamp)
            row = conn.execute("SELECT * FROM messages WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return _row_to_message(row)

    def list_messages(self, owner: OwnerRef, conversation_id: int, *, limit: int | None = None) -> List[Message]:
        """Messages in conversational order; ``limit`` keeps only the most recent ones."""

        with self.db.connect() as conn:
            self._owned_row(conn, owner, conversation_id)
            if limit is None:
                rows = conn.execute(
                    "SELECT * FROM messages WHERE conversation_id = ? ORDER BY created_at ASC, id ASC",
                    (conversation_id,),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM (
                        SELECT * FROM messages WHERE conversation_id = ?
                        ORDER BY created_at DESC, id DESC LIMIT ?
                    ) ORDER BY created_at ASC, id ASC
                    """,
                    (conversation_id, max(limit, 0)),
                ).fetchall()
        return [_row_to_message(row) for row in rows]

    def get_message(self, owner: OwnerRef, conversation_id: int, message_id: int) -> Message:
        with self.db.connect() as conn:
            self._owned_row(conn, owner, conversation_id)
            row = conn.execute(
                "SELECT * FROM messages WHERE id = ? AND conversation_id = ?",
                (message_id, conversation_id),
            ).fetchone()
        if row is None:
            raise NotFound("Message not found")
        return _row_to_message(row)

    def edit_message(self, owner: OwnerRef, conversation_id: int, message_id: int, content: str) -> Message:
        cleaned = (content or "").strip()
        if not cleaned:
            raise EmptyContent()
        with self.db.connect() as conn:
            self._owned_row(conn, owner, conversation_id)
            row = conn.execute(
                "SELECT role FROM messages WHERE id = ? AND conversation_id = ?",
                (message_id, conversation_id),
            ).fetchone()
            if row is None or row["role"] != ROLE_USER:
                raise NotEditable()
            stamp = self._now()
            conn.execute(
                "UPDATE messages SET content = ?, updated_at = ? WHERE id = ?",
                (cleaned, stamp, message_id),
            )
            self._touch(conn, conversation_id, stamp)
            updated = conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,)).fetchone()
        return _row_to_message(updated)

    def delete_message(self, owner: OwnerRef, conversation_id: int, message_id: int) -> None:
        # Any role may be deleted; only editing is restricted to user turns.
        with self.db.connect() as conn:
            self._owned_row(conn, owner, conversation_id)
            cursor = conn.execute(
                "DELETE FROM messages WHERE id = ? AND conversation_id = ?",
                (message_id, conversation_id),
            )
            if cursor.rowcount == 0:
                raise NotFound("Message not found")
            self._touch(conn, conversation_id, self._now())

    def count(self) -> int:
        return self.db.count("conversations")

    def count_messages(self) -> int:
        return self.db.count("messages")
