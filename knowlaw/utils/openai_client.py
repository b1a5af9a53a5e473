from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Sequence

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from knowlaw.utils.errors import UpstreamUnavailable
from knowlaw.utils.logging import get_logger

log = get_logger(__name__)

ChatMessage = Dict[str, str]

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_PRESENCE_PENALTY = 0.6
DEFAULT_FREQUENCY_PENALTY = 0.3


class _CircuitBreaker:
    """Skips the upstream for ``reset_seconds`` after ``threshold`` consecutive failures."""

    def __init__(
        self,
        threshold: int = 5,
        reset_seconds: float = 30.0,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.threshold = threshold
        self.reset_seconds = reset_seconds
        self._lock = threading.Lock()
        self._failure_count = 0
        self._state = "closed"
        self._opened_at = 0.0
        self._monotonic = monotonic

    @property
    def state(self) -> str:
        return self._state

    def should_skip(self) -> bool:
        if self.threshold <= 0:
            return False
        now = self._monotonic()
        with self._lock:
            if self._state != "open":
                return False
            if now - self._opened_at >= self.reset_seconds:
                self._state = "half_open"
                self._failure_count = max(self.threshold - 1, 0)
                return False
            return True

    def record_failure(self) -> bool:
        if self.threshold <= 0:
            return False
        now = self._monotonic()
        with self._lock:
            if self._state == "open":
                self._opened_at = now
                return False
            self._failure_count = min(self._failure_count + 1, self.threshold)
            if self._failure_count >= self.threshold:
                self._state = "open"
                self._opened_at = now
                return True
            self._state = "closed"
            return False

    def record_success(self) -> bool:
        with self._lock:
            previous_state = self._state
            self._failure_count = 0
            self._state = "closed"
            self._opened_at = 0.0
        return previous_state in {"open", "half_open"}


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _failure_reason(exc: BaseException) -> str:
    if isinstance(exc, httpx.InvalidURL):
        return "bad_request"
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return "auth"
        if status == 429:
            return "rate_limit"
        return f"http_{status}"
    if isinstance(exc, httpx.TransportError):
        return "network"
    return "bad_response"


def _extract_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return (content or "").strip() if isinstance(content, str) else ""


class ChatCompletionClient:
    """Thin client for an OpenAI-compatible ``/chat/completions`` endpoint.

    Every failure (transport, HTTP status, malformed body, empty completion)
    is raised as ``UpstreamUnavailable`` carrying a short ``reason`` label.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-3.5-turbo",
        timeout_seconds: float = 30.0,
        max_attempts: int = 1,
        backoff_min_seconds: float = 1.0,
        backoff_max_seconds: float = 8.0,
        breaker: _CircuitBreaker | None = None,
    ) -> None:
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(int(max_attempts), 1)
        self.backoff_min_seconds = backoff_min_seconds
        self.backoff_max_seconds = max(backoff_min_seconds, backoff_max_seconds)
        self.breaker = breaker or _CircuitBreaker()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        presence_penalty: float = DEFAULT_PRESENCE_PENALTY,
        frequency_penalty: float = DEFAULT_FREQUENCY_PENALTY,
    ) -> str:
        if self.breaker.should_skip():
            raise UpstreamUnavailable("Completion circuit is open", reason="circuit_open")

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "presence_penalty": presence_penalty,
            "frequency_penalty": frequency_penalty,
        }
        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                async for attempt in AsyncRetrying(
                    wait=wait_exponential(multiplier=1, min=self.backoff_min_seconds, max=self.backoff_max_seconds),
                    stop=stop_after_attempt(self.max_attempts),
                    retry=retry_if_exception(_is_retryable),
                    reraise=True,
                ):
                    attempt_number = attempt.retry_state.attempt_number
                    if attempt_number > 1:
                        log.warning("completion_retry", attempt=attempt_number, max_attempts=self.max_attempts)
                    with attempt:
                        response = await client.post(
                            f"{self.base_url}/chat/completions",
                            headers=self._headers(),
                            json=payload,
                        )
                        response.raise_for_status()
                        data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            reason = _failure_reason(exc)
            self._record_failure(reason)
            raise UpstreamUnavailable(f"Completion request failed: {reason}", reason=reason) from exc

        content = _extract_content(data)
        if not content:
            self._record_failure("empty")
            raise UpstreamUnavailable("Completion was empty", reason="empty")

        if self.breaker.record_success():
            log.info("completion_circuit_recovered")
        log.info(
            "completion_ok",
            model=self.model,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            chars=len(content),
        )
        return content

    def _record_failure(self, reason: str) -> None:
        opened = self.breaker.record_failure()
        if opened:
            log.warning(
                "completion_circuit_opened",
                threshold=self.breaker.threshold,
                cooldown=self.breaker.reset_seconds,
            )
        log.warning("completion_failed", reason=reason, model=self.model)


def build_messages(system_prompt: str, history: Sequence[ChatMessage], current: str) -> List[ChatMessage]:
    messages: List[ChatMessage] = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": item["role"], "content": item["content"]} for item in history)
    messages.append({"role": "user", "content": current})
    return messages
