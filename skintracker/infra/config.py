from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from skintracker.core.data.catalog import DEFAULT_ACCOUNTS
from skintracker.core.errors import ConfigError


DEFAULT_CREDENTIALS_FILE = "credentials.json"


def _env(environ: Mapping[str, str], name: str) -> str:
    return str(environ.get(name) or "").strip()


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = _env(environ, name)
    if not raw:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env(environ, name).casefold()
    if raw in {"1", "true", "on", "yes", "y"}:
        return True
    if raw in {"0", "false", "off", "no", "n"}:
        return False
    return bool(default)


def _env_list(environ: Mapping[str, str], name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = _env(environ, name)
    if not raw:
        return default
    values = tuple(part.strip() for part in raw.split(",") if part.strip())
    return values or default


@dataclass(frozen=True)
class Settings:
    telegram_token: str
    log_sheet_id: str
    names_sheet_id: str
    credentials_file: str | None
    credentials_info: dict[str, Any] | None
    accounts: tuple[str, ...] = DEFAULT_ACCOUNTS
    page_size: int = 5
    cache_ttl_seconds: int = 3600
    session_idle_seconds: int = 3600
    recent_count: int = 5
    reset_on_write_failure: bool = True
    log_level: str = "INFO"


def _load_credentials(environ: Mapping[str, str]) -> tuple[str | None, dict[str, Any] | None]:
    raw_json = _env(environ, "GOOGLE_CREDENTIALS")
    if raw_json:
        try:
            info = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"GOOGLE_CREDENTIALS is not valid JSON: {exc}") from exc
        if not isinstance(info, dict):
            raise ConfigError("GOOGLE_CREDENTIALS must be a JSON object")
        return None, info

    filename = _env(environ, "GOOGLE_CREDENTIALS_FILE") or DEFAULT_CREDENTIALS_FILE
    if not Path(filename).is_file():
        raise ConfigError(f"service account credentials not found ({filename})")
    return filename, None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Read settings from the environment. Missing required values raise ConfigError."""
    env = os.environ if environ is None else environ

    missing = [
        name
        for name in ("TELEGRAM_BOT_TOKEN", "LOG_SPREADSHEET_ID", "SKIN_SPREADSHEET_ID")
        if not _env(env, name)
    ]
    if missing:
        raise ConfigError(f"missing required settings: {', '.join(missing)}")

    credentials_file, credentials_info = _load_credentials(env)

    return Settings(
        telegram_token=_env(env, "TELEGRAM_BOT_TOKEN"),
        log_sheet_id=_env(env, "LOG_SPREADSHEET_ID"),
        names_sheet_id=_env(env, "SKIN_SPREADSHEET_ID"),
        credentials_file=credentials_file,
        credentials_info=credentials_info,
        accounts=_env_list(env, "TRADE_ACCOUNTS", DEFAULT_ACCOUNTS),
        page_size=max(1, _env_int(env, "SEARCH_PAGE_SIZE", 5)),
        cache_ttl_seconds=max(0, _env_int(env, "SKIN_CACHE_TTL_SECONDS", 3600)),
        session_idle_seconds=max(60, _env_int(env, "SESSION_IDLE_SECONDS", 3600)),
        recent_count=max(1, _env_int(env, "RECENT_TRADES_COUNT", 5)),
        reset_on_write_failure=_env_bool(env, "RESET_ON_WRITE_FAILURE", True),
        log_level=(_env(env, "LOG_LEVEL") or "INFO").upper(),
    )
