import pytest

from knowlaw.schemas.models import GuestOwner, RegisteredOwner
from knowlaw.utils.errors import InvalidCredentials, ValidationError
from knowlaw.utils.identity import IdentityService
from knowlaw.utils.session import SessionStore
from knowlaw.utils.storage import Database
from knowlaw.utils.user_store import UserStore


@pytest.fixture
def service(tmp_path):
    return IdentityService(UserStore(Database(tmp_path / "knowlaw.sqlite")), SessionStore())


def test_register_opens_session(service):
    state = service.register("Alice", "alice@example.com", "secret1", "secret1")

    identity = service.resolve_identity(state.token)
    assert identity.owner == RegisteredOwner(1)
    assert identity.name == "Alice"
    assert identity.created_at is not None


def test_login_and_logout(service):
    service.register("Alice", "alice@example.com", "secret1", "secret1")

    state = service.login("alice@example.com", "secret1")
    assert service.resolve_identity(state.token).email == "alice@example.com"

    service.logout(state.token)
    assert service.resolve_identity(state.token) is None


def test_login_failures(service):
    service.register("Alice", "alice@example.com", "secret1", "secret1")

    with pytest.raises(InvalidCredentials):
        service.login("alice@example.com", "wrong-password")
    with pytest.raises(InvalidCredentials):
        service.login("nobody@example.com", "secret1")
    with pytest.raises(ValidationError) as excinfo:
        service.login("", "")
    assert excinfo.value.message == "Email and password are required"


def test_guest_sessions_share_one_owner(service):
    first = service.create_guest()
    second = service.create_guest()

    assert first.token != second.token
    assert service.resolve_identity(first.token).owner == GuestOwner()
    assert service.resolve_identity(second.token).owner == GuestOwner()
    assert service.resolve_identity(None) is None
