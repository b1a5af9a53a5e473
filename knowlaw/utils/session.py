from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Callable, Dict, Optional

from knowlaw.schemas.models import Identity
from knowlaw.utils.security import new_session_token

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class SessionState:
    token: str
    identity: Identity
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def copy(self) -> "SessionState":
        return SessionState(
            token=self.token,
            identity=self.identity,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class SessionStore:
    """Opaque token to identity map with a sliding idle timeout."""

    def __init__(self, ttl_seconds: int = 24 * 60 * 60, *, clock: Clock | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock or _utc_now
        self._sessions: Dict[str, SessionState] = {}
        self._lock = Lock()

    def _prune_locked(self, now: datetime) -> None:
        expiry = now - timedelta(seconds=self.ttl_seconds)
        expired = [token for token, state in self._sessions.items() if state.updated_at < expiry]
        for token in expired:
            self._sessions.pop(token, None)

    def create(self, identity: Identity) -> SessionState:
        now = self._clock()
        with self._lock:
            self._prune_locked(now)
            token = new_session_token()
            while token in self._sessions:
                token = new_session_token()
            state = SessionState(token=token, identity=identity, created_at=now, updated_at=now)
            self._sessions[token] = state
            return state.copy()

    def get(self, token: str | None) -> Optional[SessionState]:
        if not token:
            return None
        now = self._clock()
        with self._lock:
            self._prune_locked(now)
            state = self._sessions.get(token)
            if state is None:
                return None
            state.updated_at = now
            return state.copy()

    def destroy(self, token: str | None) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def clear_all(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
