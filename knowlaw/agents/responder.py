from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

from knowlaw.agents.knowledge import (
    FILES_ACKNOWLEDGEMENT,
    FILES_NOTE,
    GREETING_KEYWORDS,
    HELP_KEYWORDS,
    INTENTS,
    KEYWORDS,
    SYSTEM_PROMPT,
    THANKS_KEYWORDS,
    TOPICS,
)
from knowlaw.schemas.models import FileInfo
from knowlaw.utils.config import AppConfig
from knowlaw.utils.errors import UpstreamUnavailable
from knowlaw.utils.logging import get_logger
from knowlaw.utils.observability import RequestMetrics, time_phase
from knowlaw.utils.openai_client import ChatCompletionClient, ChatMessage, build_messages

log = get_logger(__name__)

_ARABIC_PATTERN = re.compile(r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]")


def detect_language(text: str) -> str:
    return "ar" if _ARABIC_PATTERN.search(text or "") else "en"


@dataclass
class ReplyRequest:
    message: str
    files: List[FileInfo] = field(default_factory=list)
    history: List[ChatMessage] = field(default_factory=list)

    @property
    def language(self) -> str:
        return detect_language(self.message)

    def file_names(self) -> str:
        return ", ".join(item.name for item in self.files)


class Responder(Protocol):
    name: str

    async def generate(self, request: ReplyRequest) -> str: ...


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


class StaticResponder:
    """Keyword lookup over the canned paragraph table. Never fails."""

    name = "static"

    def reply(self, request: ReplyRequest) -> str:
        language = request.language
        if request.files:
            return FILES_ACKNOWLEDGEMENT[language].format(count=len(request.files), names=request.file_names())

        text = (request.message or "").lower().strip()
        for keyword, topic in KEYWORDS:
            if keyword in text:
                return TOPICS[topic][language]

        if _contains_any(text, GREETING_KEYWORDS):
            return INTENTS["greeting"][language]
        if _contains_any(text, THANKS_KEYWORDS):
            return INTENTS["thanks"][language]
        if _contains_any(text, HELP_KEYWORDS):
            return INTENTS["help"][language]
        return INTENTS["fallback"][language]

    async def generate(self, request: ReplyRequest) -> str:
        return self.reply(request)


class DelegatedResponder:
    """Asks the completion API and falls back to ``fallback`` on any upstream failure."""

    name = "delegated"

    def __init__(
        self,
        client: ChatCompletionClient,
        fallback: StaticResponder,
        *,
        metrics: RequestMetrics | None = None,
        history_limit: int = 6,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.client = client
        self.fallback = fallback
        self.metrics = metrics
        self.history_limit = history_limit
        self.system_prompt = system_prompt

    def build_prompt(self, request: ReplyRequest) -> List[ChatMessage]:
        current = request.message or ""
        if request.files:
            current += FILES_NOTE[request.language].format(count=len(request.files), names=request.file_names())
        history = request.history[-self.history_limit :] if self.history_limit > 0 else []
        return build_messages(self.system_prompt, history, current)

    async def generate(self, request: ReplyRequest) -> str:
        messages = self.build_prompt(request)
        try:
            if self.metrics is not None:
                with time_phase(self.metrics, "generation"):
                    return await self.client.complete(messages)
            return await self.client.complete(messages)
        except UpstreamUnavailable as exc:
            if self.metrics is not None:
                self.metrics.increment_counter(f"responder_fallback::{exc.reason}")
            log.warning("responder_fallback", reason=exc.reason, language=request.language)
            return await self.fallback.generate(request)
        except Exception as exc:
            if self.metrics is not None:
                self.metrics.increment_counter("responder_fallback::error")
            log.error("responder_fallback", reason="error", error=repr(exc), language=request.language)
            return await self.fallback.generate(request)


def build_responder(config: AppConfig, metrics: RequestMetrics | None = None) -> Responder:
    static = StaticResponder()
    if not config.llm_enabled:
        log.info("responder_selected", responder=static.name)
        return static
    client = ChatCompletionClient(
        api_key=(config.openai_api_key or "").strip(),
        base_url=config.openai_base_url,
        model=config.openai_model,
        timeout_seconds=config.openai_timeout_seconds,
        max_attempts=config.openai_max_attempts,
    )
    log.info("responder_selected", responder=DelegatedResponder.name, model=config.openai_model)
    return DelegatedResponder(client, static, metrics=metrics, history_limit=config.llm_history_limit)
