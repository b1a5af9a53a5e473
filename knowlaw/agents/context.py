from __future__ import annotations

from dataclasses import dataclass

from knowlaw.agents.chat_agent import ChatAgent
from knowlaw.agents.responder import Responder, build_responder
from knowlaw.utils.booking_store import BookingStore
from knowlaw.utils.config import AppConfig
from knowlaw.utils.conversation_store import ConversationStore
from knowlaw.utils.identity import IdentityService
from knowlaw.utils.logging import get_logger
from knowlaw.utils.observability import RequestMetrics
from knowlaw.utils.session import SessionStore
from knowlaw.utils.storage import Database
from knowlaw.utils.uploads import UploadPolicy
from knowlaw.utils.user_store import UserStore

log = get_logger(__name__)


@dataclass
class AppContext:
    """Everything a request handler needs, built once per process."""

    config: AppConfig
    db: Database
    users: UserStore
    conversations: ConversationStore
    bookings: BookingStore
    sessions: SessionStore
    identity: IdentityService
    responder: Responder
    chat: ChatAgent
    uploads: UploadPolicy
    metrics: RequestMetrics

    def start(self) -> None:
        self.db.initialize()
        self.config.uploads_dir.mkdir(parents=True, exist_ok=True)
        log.info(
            "app_context_started",
            database=str(self.db.path),
            responder=getattr(self.responder, "name", "unknown"),
        )

    def close(self) -> None:
        self.sessions.clear_all()
        log.info("app_context_closed")


def build_context(
    config: AppConfig,
    *,
    responder: Responder | None = None,
    metrics: RequestMetrics | None = None,
) -> AppContext:
    metrics = metrics or RequestMetrics()
    db = Database(config.database_path)
    users = UserStore(db)
    conversations = ConversationStore(db)
    sessions = SessionStore(ttl_seconds=config.session_ttl_seconds)
    responder = responder or build_responder(config, metrics)
    return AppContext(
        config=config,
        db=db,
        users=users,
        conversations=conversations,
        bookings=BookingStore(db),
        sessions=sessions,
        identity=IdentityService(users, sessions),
        responder=responder,
        chat=ChatAgent(
            conversations,
            responder,
            uploads_dir=config.uploads_dir,
            history_limit=config.chat_history_limit,
            metrics=metrics,
        ),
        uploads=UploadPolicy(max_bytes=config.upload_max_bytes, max_files=config.upload_max_files),
        metrics=metrics,
    )
