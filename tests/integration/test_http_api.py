from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from knowlaw.agents.context import build_context
from knowlaw.agents.http_api import create_app
from knowlaw.agents.knowledge import TOPICS
from knowlaw.agents.responder import DelegatedResponder, StaticResponder
from knowlaw.utils.config import AppConfig
from knowlaw.utils.errors import UpstreamUnavailable
from knowlaw.utils.observability import RequestMetrics
from knowlaw.utils.openai_client import ChatCompletionClient


class _DownClient:
    async def complete(self, messages, **kwargs):
        raise UpstreamUnavailable("down", reason="timeout")


@pytest.fixture
def config(tmp_path):
    return AppConfig().with_overrides(
        data_dir=tmp_path / "data",
        uploads_dir=tmp_path / "uploads",
        upload_max_bytes=64,
    )


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as test_client:
        yield test_client


def _register(client: TestClient, name: str = "Alice", email: str = "alice@example.com") -> dict:
    resp = client.post(
        "/register",
        json={"name": name, "email": email, "password": "secret1", "confirmPassword": "secret1"},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def _booking(day: date, **overrides) -> dict:
    payload = {
        "lawyerId": 3,
        "clientName": "Alice",
        "clientEmail": "alice@example.com",
        "clientPhone": "+20 100 000 0000",
        "appointmentDate": day.isoformat(),
        "appointmentTime": "10:00",
        "caseDescription": "Company formation",
    }
    payload.update(overrides)
    return payload


@pytest.mark.smoke
def test_registered_user_end_to_end(client):
    body = _register(client)
    assert body["success"] is True
    assert body["message"] == "Registration successful"
    assert body["user"]["name"] == "Alice"
    assert body["user"]["isGuest"] is False
    assert "X-Request-ID" in client.get("/health").headers

    session = client.get("/session").json()
    assert session["user"]["email"] == "alice@example.com"

    chat = client.post("/chat", json={"message": "What does the constitution say about rights?"})
    assert chat.status_code == 200
    chat_body = chat.json()
    assert chat_body["response"] == TOPICS["constitution"]["en"]
    conversation_id = chat_body["conversationId"]

    follow_up = client.post("/chat", json={"message": "thanks", "conversationId": conversation_id})
    assert follow_up.json()["conversationId"] == conversation_id

    listing = client.get("/conversations").json()["conversations"]
    assert [item["id"] for item in listing] == [conversation_id]
    assert listing[0]["title"] == "What does the constitution say about rights?"

    detail = client.get(f"/conversations/{conversation_id}").json()
    roles = [message["role"] for message in detail["messages"]]
    assert roles == ["user", "assistant", "user", "assistant"]

    user_message_id = chat_body["userMessageId"]
    edited = client.put(
        f"/conversations/{conversation_id}/messages/{user_message_id}",
        json={"content": "What does the constitution guarantee?"},
    )
    assert edited.status_code == 200
    assert edited.json()["data"]["content"] == "What does the constitution guarantee?"

    not_editable = client.put(
        f"/conversations/{conversation_id}/messages/{chat_body['assistantMessageId']}",
        json={"content": "rewrite the answer"},
    )
    assert not_editable.status_code == 404
    assert not_editable.json() == {"success": False, "message": "Message not found or cannot be edited"}

    deleted = client.delete(f"/conversations/{conversation_id}/messages/{chat_body['assistantMessageId']}")
    assert deleted.json()["message"] == "Message deleted successfully"

    renamed = client.put(f"/conversations/{conversation_id}", json={"title": "Constitution"})
    assert renamed.json()["conversation"]["title"] == "Constitution"

    tomorrow = date.today() + timedelta(days=1)
    booked = client.post("/booking", json=_booking(tomorrow))
    assert booked.status_code == 200
    booking = booked.json()["booking"]
    assert booking["lawyerName"] == "Emily Rodriguez"
    assert booking["status"] == "pending"

    bookings = client.get("/bookings").json()["bookings"]
    assert bookings[0]["lawyerSpecialty"] == "Corporate Law"

    dashboard = client.get("/dashboard").json()
    assert dashboard["stats"] == {"totalUsers": 1, "daysActive": 0}

    assert client.delete(f"/conversations/{conversation_id}").status_code == 200
    assert client.get(f"/conversations/{conversation_id}").status_code == 404

    assert client.post("/logout").json() == {"success": True, "message": "Logged out successfully"}
    assert client.get("/conversations").status_code == 401


def test_chat_in_existing_conversation_keeps_title_and_bumps_activity(client):
    _register(client)
    client.post("/logout")
    client.post("/login", json={"email": "alice@example.com", "password": "secret1"})

    created = client.post("/conversations", json={"title": "Contracts"}).json()["conversation"]
    resp = client.post("/chat", json={"message": "What is a contract?", "conversationId": created["id"]})
    assert resp.status_code == 200
    assert resp.json()["response"]

    detail = client.get(f"/conversations/{created['id']}").json()
    assert detail["conversation"]["title"] == "Contracts"
    assert datetime.fromisoformat(detail["conversation"]["updatedAt"]) > datetime.fromisoformat(created["updatedAt"])
    assistant = detail["messages"][-1]
    assert assistant["role"] == "assistant"
    assert assistant["content"] == TOPICS["contract"]["en"]


def test_login_flow(client):
    _register(client)
    client.post("/logout")

    bad = client.post("/login", json={"email": "alice@example.com", "password": "nope123"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "message": "Invalid email or password"}

    missing = client.post("/login", json={"email": "alice@example.com"})
    assert missing.status_code == 400

    ok = client.post("/login", json={"email": "alice@example.com", "password": "secret1"})
    assert ok.status_code == 200
    assert ok.json()["message"] == "Login successful"
    assert client.get("/session").json()["user"]["name"] == "Alice"


def test_registration_errors(client):
    _register(client)
    client.post("/logout")

    duplicate = client.post(
        "/register",
        json={"name": "Eve", "email": "alice@example.com", "password": "secret1", "confirmPassword": "secret1"},
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Email already registered"

    mismatch = client.post(
        "/register",
        json={"name": "Eve", "email": "eve@example.com", "password": "secret1", "confirmPassword": "secret2"},
    )
    assert mismatch.json() == {"success": False, "message": "Passwords do not match"}

    malformed = client.post("/register", content=b"not json", headers={"content-type": "application/json"})
    assert malformed.status_code == 400


def test_anonymous_requests_are_rejected(client):
    session = client.get("/session").json()
    assert session == {"success": False, "message": "Not authenticated", "allowGuest": True}

    for method, path in [
        ("get", "/conversations"),
        ("post", "/conversations"),
        ("get", "/dashboard"),
        ("get", "/bookings"),
    ]:
        resp = getattr(client, method)(path)
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "message": "Not authenticated"}

    assert client.post("/chat", json={"message": "hello"}).status_code == 401


def test_guest_sessions_share_history(config):
    app = create_app(config)
    with TestClient(app) as first, TestClient(app) as second:
        guest = first.post("/guest").json()
        assert guest["user"] == {"id": "guest", "name": "Guest User", "email": "guest@knowlaw.com", "isGuest": True}
        second.post("/guest")

        chat = first.post("/chat", json={"message": "hello"}).json()
        shared = second.get("/conversations").json()["conversations"]
        assert [item["id"] for item in shared] == [chat["conversationId"]]

        dashboard = second.get("/dashboard").json()
        assert dashboard["user"]["isGuest"] is True
        assert dashboard["stats"]["daysActive"] == 0


def test_conversations_are_isolated_between_owners(config):
    app = create_app(config)
    with TestClient(app) as alice, TestClient(app) as bob:
        _register(alice)
        _register(bob, name="Bob", email="bob@example.com")

        created = alice.post("/conversations", json={"title": "Private matter"}).json()["conversation"]
        cid = created["id"]
        message_id = alice.post("/chat", json={"message": "my tenant", "conversationId": cid}).json()["userMessageId"]

        assert bob.get("/conversations").json()["conversations"] == []
        assert bob.get(f"/conversations/{cid}").status_code == 404
        assert bob.put(f"/conversations/{cid}", json={"title": "Stolen"}).status_code == 404
        assert bob.delete(f"/conversations/{cid}").status_code == 404
        assert bob.post("/chat", json={"message": "hi", "conversationId": cid}).status_code == 404
        assert bob.delete(f"/conversations/{cid}/messages/{message_id}").status_code == 404
        assert bob.get("/conversations/not-a-number").status_code == 404

        assert alice.get(f"/conversations/{cid}").json()["conversation"]["title"] == "Private matter"


def test_conversation_validation(client):
    _register(client)

    created = client.post("/conversations").json()["conversation"]
    assert created["title"] == "New Chat"

    empty_title = client.put(f"/conversations/{created['id']}", json={"title": "   "})
    assert empty_title.status_code == 400

    assert client.post("/chat", json={"message": "   "}).status_code == 400


def test_booking_validation(client):
    _register(client)

    yesterday = date.today() - timedelta(days=1)
    past = client.post("/booking", json=_booking(yesterday))
    assert past.status_code == 400
    assert past.json() == {"success": False, "message": "Appointment date must be in the future"}

    unknown = client.post("/booking", json=_booking(date.today(), lawyerId=42))
    assert unknown.json()["message"] == "Invalid lawyer selected"

    missing = client.post("/booking", json=_booking(date.today(), clientPhone=""))
    assert missing.json()["message"] == "All fields are required"

    assert client.get("/bookings").json()["bookings"] == []


def test_chat_uploads(client, config):
    client.post("/guest")

    ok = client.post(
        "/chat",
        data={"message": ""},
        files=[("files", ("lease.pdf", b"%PDF-1.4", "application/pdf"))],
    )
    assert ok.status_code == 200
    assert "lease.pdf" in ok.json()["response"]
    cid = ok.json()["conversationId"]
    stored = client.get(f"/conversations/{cid}").json()["messages"][0]
    assert stored["fileInfo"] == [{"name": "lease.pdf", "size": 8, "mimetype": "application/pdf"}]
    assert list(config.uploads_dir.iterdir()) == []

    too_big = client.post("/chat", files=[("files", ("big.pdf", b"x" * 65, "application/pdf"))])
    assert too_big.status_code == 413

    wrong_type = client.post("/chat", files=[("files", ("run.exe", b"MZ", "application/x-msdownload"))])
    assert wrong_type.status_code == 400

    too_many = client.post(
        "/chat",
        files=[("files", (f"n{i}.txt", b"x", "text/plain")) for i in range(11)],
    )
    assert too_many.status_code == 400
    assert too_many.json()["message"] == "Too many files. Maximum 10 files allowed."

    counters = client.get("/metrics").json()["counters"]
    assert counters["upload_rejected::FileTooLarge"] == 1
    assert counters["upload_rejected::UnsupportedType"] == 1
    assert counters["upload_rejected::TooManyFiles"] == 1
    assert len(client.get("/conversations").json()["conversations"]) == 1


def test_delegated_responder_falls_back_when_upstream_is_down(config):
    metrics = RequestMetrics()
    responder = DelegatedResponder(_DownClient(), StaticResponder(), metrics=metrics)
    context = build_context(config, responder=responder, metrics=metrics)

    with TestClient(create_app(context=context)) as client:
        client.post("/guest")
        resp = client.post("/chat", json={"message": "Can I sue my employer?"})

        assert resp.status_code == 200
        assert resp.json()["response"] == TOPICS["lawsuit"]["en"]
        assert client.get("/metrics").json()["counters"]["responder_fallback::timeout"] == 1


def test_malformed_model_url_still_answers(config):
    metrics = RequestMetrics()
    model = ChatCompletionClient(api_key="sk-x", base_url="http://exa mple.com:abc/v1")
    responder = DelegatedResponder(model, StaticResponder(), metrics=metrics)
    context = build_context(config, responder=responder, metrics=metrics)

    with TestClient(create_app(context=context)) as client:
        client.post("/guest")
        resp = client.post("/chat", json={"message": "What is a contract?"})

        assert resp.status_code == 200
        assert resp.json()["response"] == TOPICS["contract"]["en"]
        detail = client.get(f"/conversations/{resp.json()['conversationId']}").json()
        assert [m["role"] for m in detail["messages"]] == ["user", "assistant"]
        assert client.get("/metrics").json()["counters"]["responder_fallback::bad_request"] == 1


def test_ids_beyond_integer_range_are_not_found(client):
    client.post("/guest")
    huge = "99999999999999999999"

    for resp in (
        client.get(f"/conversations/{huge}"),
        client.delete(f"/conversations/{huge}/messages/{huge}"),
        client.post("/chat", json={"message": "hello", "conversationId": huge}),
        client.post("/chat", json={"message": "hello", "conversationId": int(huge)}),
    ):
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Conversation not found"}


def test_chat_json_content_type_is_case_insensitive(client):
    client.post("/guest")

    resp = client.post(
        "/chat",
        content=b'{"message": "hello"}',
        headers={"Content-Type": "Application/JSON"},
    )

    assert resp.status_code == 200
    assert resp.json()["response"]
