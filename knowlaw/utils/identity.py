from __future__ import annotations

from knowlaw.schemas.models import GUEST_EMAIL, GUEST_NAME, GuestOwner, Identity, RegisteredOwner
from knowlaw.utils.errors import InvalidCredentials, ValidationError
from knowlaw.utils.logging import get_logger
from knowlaw.utils.session import SessionState, SessionStore
from knowlaw.utils.user_store import UserAccount, UserStore

log = get_logger(__name__)


def _identity_for(user: UserAccount) -> Identity:
    return Identity(
        owner=RegisteredOwner(user.user_id),
        name=user.name,
        email=user.email,
        created_at=user.created_at,
    )


def guest_identity() -> Identity:
    return Identity(owner=GuestOwner(), name=GUEST_NAME, email=GUEST_EMAIL)


class IdentityService:
    """Binds session tokens to registered users or to the shared guest identity.

    Nothing here creates a guest implicitly: a caller that resolves to
    ``None`` has to call ``create_guest`` on its own.
    """

    def __init__(self, users: UserStore, sessions: SessionStore) -> None:
        self.users = users
        self.sessions = sessions

    def resolve_identity(self, token: str | None) -> Identity | None:
        state = self.sessions.get(token)
        return state.identity if state else None

    def register(self, name: str, email: str, password: str, confirm_password: str) -> SessionState:
        user = self.users.create_user(name, email, password, confirm_password)
        return self.sessions.create(_identity_for(user))

    def login(self, email: str, password: str) -> SessionState:
        if not (email or "").strip() or not password:
            raise ValidationError("Email and password are required")
        user = self.users.authenticate(email, password)
        if user is None:
            log.info("login_failed")
            raise InvalidCredentials()
        log.info("login_ok", user_id=user.user_id)
        return self.sessions.create(_identity_for(user))

    def create_guest(self) -> SessionState:
        state = self.sessions.create(guest_identity())
        log.info("guest_session_created")
        return state

    def logout(self, token: str | None) -> None:
        self.sessions.destroy(token)
