from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from knowlaw.agents.responder import ReplyRequest, Responder
from knowlaw.schemas.models import FileInfo, Message, OwnerRef
from knowlaw.utils.conversation_store import ROLE_ASSISTANT, ROLE_USER, ConversationStore, derive_title
from knowlaw.utils.errors import ValidationError
from knowlaw.utils.logging import get_logger
from knowlaw.utils.observability import RequestMetrics
from knowlaw.utils.openai_client import ChatMessage
from knowlaw.utils.uploads import IncomingFile, stage_uploads

log = get_logger(__name__)


@dataclass(frozen=True)
class ChatTurn:
    conversation_id: int
    response: str
    user_message: Message
    assistant_message: Message


def upload_note(files: Sequence[FileInfo]) -> str:
    if not files:
        return ""
    names = ", ".join(item.name for item in files)
    return f"\n\n[User uploaded {len(files)} file(s): {names}]"


def _as_history(messages: Sequence[Message]) -> List[ChatMessage]:
    return [
        {"role": ROLE_USER if item.role == ROLE_USER else ROLE_ASSISTANT, "content": item.content}
        for item in messages
    ]


class ChatAgent:
    """Runs one chat turn: resolve the conversation, log the user turn, reply, log the reply."""

    def __init__(
        self,
        conversations: ConversationStore,
        responder: Responder,
        *,
        uploads_dir: Path,
        history_limit: int = 10,
        metrics: RequestMetrics | None = None,
    ) -> None:
        self.conversations = conversations
        self.responder = responder
        self.uploads_dir = Path(uploads_dir)
        self.history_limit = history_limit
        self.metrics = metrics

    async def run_turn(
        self,
        owner: OwnerRef,
        message: str,
        *,
        conversation_id: int | None = None,
        files: Sequence[IncomingFile] = (),
    ) -> ChatTurn:
        text = (message or "").strip()
        if not text and not files:
            raise ValidationError("Message or file is required")

        started = time.perf_counter()
        if conversation_id is None:
            conversation = self.conversations.create(owner, derive_title(text))
        else:
            conversation = self.conversations.get(owner, conversation_id)

        # The most recent turns, read before this turn is stored.
        history = self.conversations.list_messages(owner, conversation.id, limit=self.history_limit)

        with stage_uploads(files, self.uploads_dir) as file_info:
            user_message = self.conversations.append_message(
                owner,
                conversation.id,
                ROLE_USER,
                text + upload_note(file_info),
                file_info,
            )
            reply = await self.responder.generate(
                ReplyRequest(message=text, files=list(file_info), history=_as_history(history))
            )
            assistant_message = self.conversations.append_message(owner, conversation.id, ROLE_ASSISTANT, reply)

        duration_ms = (time.perf_counter() - started) * 1000
        if self.metrics is not None:
            self.metrics.record_phase("chat_turn", duration_ms)
        log.info(
            "chat_turn_completed",
            conversation_id=conversation.id,
            responder=getattr(self.responder, "name", "unknown"),
            files=len(file_info),
            history=len(history),
            duration_ms=round(duration_ms, 2),
        )
        return ChatTurn(
            conversation_id=conversation.id,
            response=reply,
            user_message=user_message,
            assistant_message=assistant_message,
        )
