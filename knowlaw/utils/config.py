from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List

from knowlaw.utils.env import get_bool_env, get_float_env, get_int_env, get_str_env, load_env_file

_PLACEHOLDER_KEYS = {"your-api-key-here"}

DEFAULT_DATA_DIR = Path("assets/data")
DEFAULT_UPLOADS_DIR = Path("assets/uploads")


def _cors_origins(raw: str) -> List[str]:
    if raw.strip() == "*":
        return ["*"]
    return [entry.strip() for entry in raw.split(",") if entry.strip()]


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path = DEFAULT_DATA_DIR
    uploads_dir: Path = DEFAULT_UPLOADS_DIR
    session_ttl_seconds: int = 24 * 60 * 60
    session_cookie_name: str = "knowlaw_session"
    session_cookie_secure: bool = False
    upload_max_bytes: int = 10 * 1024 * 1024
    upload_max_files: int = 10
    chat_history_limit: int = 10
    llm_history_limit: int = 6
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"
    openai_timeout_seconds: float = 30.0
    openai_max_attempts: int = 1
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = True

    @property
    def database_path(self) -> Path:
        return self.data_dir / "knowlaw.sqlite"

    @property
    def llm_enabled(self) -> bool:
        key = (self.openai_api_key or "").strip()
        return bool(key) and key not in _PLACEHOLDER_KEYS

    @classmethod
    def from_env(cls) -> "AppConfig":
        load_env_file()
        origins = _cors_origins(os.getenv("CORS_ALLOW_ORIGINS", "*"))
        allow_credentials = get_bool_env("CORS_ALLOW_CREDENTIALS", True)
        # Browsers reject a wildcard origin combined with credentials.
        if origins == ["*"] and allow_credentials:
            allow_credentials = False
        return cls(
            data_dir=Path(get_str_env("KNOWLAW_DATA_DIR", str(DEFAULT_DATA_DIR))),
            uploads_dir=Path(get_str_env("KNOWLAW_UPLOADS_DIR", str(DEFAULT_UPLOADS_DIR))),
            session_ttl_seconds=get_int_env("SESSION_TTL_SECONDS", 24 * 60 * 60, minimum=60),
            session_cookie_name=get_str_env("SESSION_COOKIE_NAME", "knowlaw_session"),
            session_cookie_secure=get_bool_env("SESSION_COOKIE_SECURE", False),
            upload_max_bytes=get_int_env("UPLOAD_MAX_BYTES", 10 * 1024 * 1024),
            upload_max_files=get_int_env("UPLOAD_MAX_FILES", 10),
            chat_history_limit=get_int_env("CHAT_HISTORY_LIMIT", 10),
            llm_history_limit=get_int_env("LLM_HISTORY_LIMIT", 6),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=get_str_env("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            openai_model=get_str_env("OPENAI_MODEL", "gpt-3.5-turbo"),
            openai_timeout_seconds=get_float_env("OPENAI_TIMEOUT_SECONDS", 30.0),
            openai_max_attempts=get_int_env("OPENAI_MAX_ATTEMPTS", 1),
            cors_origins=origins,
            cors_allow_credentials=allow_credentials,
        )

    def with_overrides(self, **changes) -> "AppConfig":
        return replace(self, **changes)
