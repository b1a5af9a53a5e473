from __future__ import annotations

import argparse
import asyncio
import os
from pathlib import Path
from typing import Any, Dict, Sequence

import uvicorn
import yaml

from knowlaw.agents.context import build_context
from knowlaw.agents.responder import ReplyRequest
from knowlaw.utils.config import AppConfig
from knowlaw.utils.env import load_env_file
from knowlaw.utils.logging import get_logger

load_env_file()
log = get_logger(__name__)

_ENV_MAP: Dict[str, Dict[str, str]] = {
    "openai": {
        "base_url": "OPENAI_BASE_URL",
        "model": "OPENAI_MODEL",
        "timeout_seconds": "OPENAI_TIMEOUT_SECONDS",
        "max_attempts": "OPENAI_MAX_ATTEMPTS",
    },
    "storage": {
        "data_dir": "KNOWLAW_DATA_DIR",
        "uploads_dir": "KNOWLAW_UPLOADS_DIR",
    },
    "session": {
        "ttl_seconds": "SESSION_TTL_SECONDS",
        "cookie_name": "SESSION_COOKIE_NAME",
        "cookie_secure": "SESSION_COOKIE_SECURE",
    },
    "uploads": {
        "max_bytes": "UPLOAD_MAX_BYTES",
        "max_files": "UPLOAD_MAX_FILES",
    },
    "cors": {
        "allow_origins": "CORS_ALLOW_ORIGINS",
        "allow_credentials": "CORS_ALLOW_CREDENTIALS",
    },
}


def _load_config(path: str | None) -> Dict[str, Any]:
    if not path:
        return {}
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise SystemExit(f"Config file not found: {path}")
    with cfg_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return data


def _apply_config(config: Dict[str, Any]) -> None:
    for section, keys in _ENV_MAP.items():
        values = config.get(section) or {}
        for key, env_var in keys.items():
            value = values.get(key)
            if value is None or value == "":
                continue
            if isinstance(value, list):
                value = ",".join(str(item) for item in value)
            os.environ[env_var] = str(value)

    if "api_key" in (config.get("openai") or {}):
        log.warning("config_api_key_ignored", msg="Use .env for OPENAI_API_KEY")


def cmd_serve(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    server_cfg = config.get("server", {})
    app_path = args.app
    host = args.host or server_cfg.get("host", "0.0.0.0")
    port = args.port or int(server_cfg.get("port", 8000))
    reload = args.reload
    log.info("api_serve_start", app=app_path, host=host, port=port, reload=reload)
    uvicorn.run(app_path, host=host, port=port, reload=reload)


def cmd_init_db(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    context = build_context(AppConfig.from_env())
    context.start()
    print(f"Database ready: {context.db.path}")


def cmd_ask(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    context = build_context(AppConfig.from_env())

    async def run() -> str:
        return await context.responder.generate(ReplyRequest(message=args.question))

    answer = asyncio.run(run())
    log.info("ask_answered", responder=getattr(context.responder, "name", "unknown"), chars=len(answer))
    print(answer)


def cmd_stats(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    context = build_context(AppConfig.from_env())
    print("Users:", context.users.count())
    print("Conversations:", context.conversations.count())
    print("Messages:", context.conversations.count_messages())
    print("Bookings:", context.bookings.count())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Know Law legal assistant CLI")
    parser.add_argument("--config", help="Path to YAML config", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_serve = sub.add_parser("serve", help="Run the HTTP API server")
    p_serve.add_argument("--app", default="knowlaw.agents.http_api:app", help="ASGI app import path")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--reload", action="store_true")
    p_serve.set_defaults(func=cmd_serve)

    p_init = sub.add_parser("init-db", help="Create the SQLite schema if it does not exist")
    p_init.set_defaults(func=cmd_init_db)

    p_ask = sub.add_parser("ask", help="Answer one question with the configured responder")
    p_ask.add_argument("question", help="User question")
    p_ask.set_defaults(func=cmd_ask)

    p_stats = sub.add_parser("stats", help="Print row counts for every table")
    p_stats.set_defaults(func=cmd_stats)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = _load_config(args.config)
    _apply_config(config)
    args.func(args, config)


if __name__ == "__main__":
    main()
