import asyncio

import pytest

from knowlaw.agents.knowledge import INTENTS, SYSTEM_PROMPT, TOPICS
from knowlaw.agents.responder import (
    DelegatedResponder,
    ReplyRequest,
    StaticResponder,
    build_responder,
    detect_language,
)
from knowlaw.schemas.models import FileInfo
from knowlaw.utils.config import AppConfig
from knowlaw.utils.errors import UpstreamUnavailable
from knowlaw.utils.observability import RequestMetrics


class _FakeClient:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.calls = []

    async def complete(self, messages, **kwargs):
        self.calls.append(messages)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _reply(message: str, files=None) -> str:
    return StaticResponder().reply(ReplyRequest(message=message, files=files or []))


def test_detect_language():
    assert detect_language("What are my rights?") == "en"
    assert detect_language("ما هي حقوقي؟") == "ar"
    assert detect_language("") == "en"


def test_static_keyword_table_is_ordered():
    assert _reply("My landlord wants to change the contract and raise the rent") == TOPICS["rent"]["en"]
    assert _reply("Is this contract valid?") == TOPICS["contract"]["en"]
    assert _reply("What does the CONSTITUTION say?") == TOPICS["constitution"]["en"]


def test_static_answers_in_arabic():
    assert _reply("ما هي حقوقي في الدستور؟") == TOPICS["constitution"]["ar"]
    assert _reply("مرحبا") == INTENTS["greeting"]["ar"]


def test_static_intents_and_fallback():
    assert _reply("hello there") == INTENTS["greeting"]["en"]
    assert _reply("thank you so much") == INTENTS["thanks"]["en"]
    assert _reply("can you help me") == INTENTS["help"]["en"]
    assert _reply("zzz") == INTENTS["fallback"]["en"]


def test_files_take_priority_over_keywords():
    files = [FileInfo(name="lease.pdf", size=10, mimetype="application/pdf")]
    reply = _reply("question about my rent", files)

    assert "1 file(s): lease.pdf" in reply
    assert reply != TOPICS["rent"]["en"]


def test_delegated_returns_model_reply_and_builds_prompt():
    client = _FakeClient("Model answer")
    responder = DelegatedResponder(client, StaticResponder(), history_limit=2)
    history = [
        {"role": "user", "content": "h1"},
        {"role": "assistant", "content": "h2"},
        {"role": "user", "content": "h3"},
    ]
    files = [FileInfo(name="a.pdf", size=1, mimetype="application/pdf")]

    reply = asyncio.run(responder.generate(ReplyRequest(message="What is a contract?", files=files, history=history)))

    assert reply == "Model answer"
    messages = client.calls[0]
    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert [m["content"] for m in messages[1:3]] == ["h2", "h3"]
    assert messages[-1]["content"].startswith("What is a contract?")
    assert "a.pdf" in messages[-1]["content"]


@pytest.mark.parametrize("reason", ["timeout", "auth", "rate_limit", "empty", "circuit_open"])
def test_delegated_falls_back_on_upstream_failure(reason):
    metrics = RequestMetrics()
    client = _FakeClient(UpstreamUnavailable("down", reason=reason))
    responder = DelegatedResponder(client, StaticResponder(), metrics=metrics)

    reply = asyncio.run(responder.generate(ReplyRequest(message="I want to sue my employer")))

    assert reply == TOPICS["lawsuit"]["en"]
    assert metrics.counter(f"responder_fallback::{reason}") == 1
    assert metrics.snapshot()["phases"]["generation"]["count"] == 1


def test_build_responder_selects_by_configuration(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert isinstance(build_responder(AppConfig()), StaticResponder)
    assert isinstance(build_responder(AppConfig(openai_api_key="your-api-key-here")), StaticResponder)

    responder = build_responder(AppConfig(openai_api_key="sk-live"))
    assert isinstance(responder, DelegatedResponder)
    assert isinstance(responder.fallback, StaticResponder)


def test_delegated_falls_back_on_unexpected_client_error():
    metrics = RequestMetrics()
    responder = DelegatedResponder(_FakeClient(RuntimeError("bug")), StaticResponder(), metrics=metrics)

    reply = asyncio.run(responder.generate(ReplyRequest(message="Is this contract valid?")))

    assert reply == TOPICS["contract"]["en"]
    assert metrics.counter("responder_fallback::error") == 1
