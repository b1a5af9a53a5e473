import pytest

from knowlaw.utils.errors import EmailTaken, ValidationError
from knowlaw.utils.storage import Database
from knowlaw.utils.user_store import UserStore


@pytest.fixture
def users(tmp_path):
    return UserStore(Database(tmp_path / "knowlaw.sqlite"))


def test_create_user_stores_hash_not_password(users):
    user = users.create_user("Alice", "alice@example.com", "secret1", "secret1")

    assert user.user_id > 0
    assert user.name == "Alice"
    with users.db.connect() as conn:
        row = conn.execute("SELECT password_hash FROM users WHERE id = ?", (user.user_id,)).fetchone()
    assert row["password_hash"] != "secret1"
    assert "secret1" not in row["password_hash"]


@pytest.mark.parametrize(
    "fields, message",
    [
        (("", "a@example.com", "secret1", "secret1"), "All fields are required"),
        (("Al", "", "secret1", "secret1"), "All fields are required"),
        (("Al", "a@example.com", "secret1", ""), "All fields are required"),
        (("Al", "a@example.com", "secret1", "secret2"), "Passwords do not match"),
        (("Al", "a@example.com", "abc", "abc"), "Password must be at least 6 characters"),
    ],
)
def test_registration_validation(users, fields, message):
    with pytest.raises(ValidationError) as excinfo:
        users.create_user(*fields)
    assert excinfo.value.message == message
    assert users.count() == 0


def test_second_registration_with_same_email_fails(users):
    users.create_user("Alice", "alice@example.com", "secret1", "secret1")

    with pytest.raises(EmailTaken):
        users.create_user("Other", "alice@example.com", "different9", "different9")
    assert users.count() == 1


def test_email_match_is_case_sensitive(users):
    users.create_user("Alice", "alice@example.com", "secret1", "secret1")
    users.create_user("Alice Upper", "Alice@example.com", "secret1", "secret1")

    assert users.count() == 2


def test_authenticate(users):
    created = users.create_user("Alice", "alice@example.com", "secret1", "secret1")

    assert users.authenticate("alice@example.com", "secret1").user_id == created.user_id
    assert users.authenticate("alice@example.com", "wrong!!") is None
    assert users.authenticate("nobody@example.com", "secret1") is None
    assert users.get_by_email("alice@example.com").name == "Alice"
    assert users.get_by_id(created.user_id).email == "alice@example.com"
