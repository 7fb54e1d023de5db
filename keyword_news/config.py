"""
Settings from the environment (.env supported via python-dotenv).

KEYWORD_NEWS_CONFIG may hold a JSON object whose keys override individual
settings by field name, e.g. {"app_id": "kwnews", "group_by": "date"}.
An unparsable value is fatal: startup stops with ConfigError.
"""

import json
import os
import sys
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

DEFAULT_BOOKMARKS_PATH = str(Path.home() / ".keyword_news" / "bookmarks.json")
GROUP_BY_CHOICES = ("date", "hour")


@dataclass(frozen=True)
class Settings:
    sheet_id: str = ""
    sheet_name: str = "news"
    deep_sheet_name: str = "deep"
    sheets_api_key: str = ""
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_auth_token: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    app_id: str = "default-app-id"
    group_by: str = "hour"
    bookmarks_path: str = DEFAULT_BOOKMARKS_PATH
    retry_base_delay: float = 1.0
    insight_vote_rpc: str = ""

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def has_gemini(self) -> bool:
        return bool(self.gemini_api_key)


ENV_VARS = {
    "sheet_id": "GOOGLE_SHEET_ID",
    "sheet_name": "GOOGLE_SHEET_NAME",
    "deep_sheet_name": "GOOGLE_DEEP_SHEET_NAME",
    "sheets_api_key": "GOOGLE_SHEETS_API_KEY",
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_KEY",
    "supabase_auth_token": "SUPABASE_AUTH_TOKEN",
    "gemini_api_key": "GEMINI_API_KEY",
    "gemini_model": "GEMINI_MODEL",
    "app_id": "APP_ID",
    "group_by": "GROUP_BY",
    "bookmarks_path": "BOOKMARKS_PATH",
    "retry_base_delay": "RETRY_BASE_DELAY",
    "insight_vote_rpc": "INSIGHT_VOTE_RPC",
}


def load_env_file() -> None:
    load_dotenv(find_dotenv(usecwd=True), override=True)


def _clean(value: str) -> str:
    return str(value).strip().replace('"', '').replace("'", "")


def _coerce(name: str, value) -> object:
    if name == "retry_base_delay":
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number, got {value!r}")
    value = _clean(value)
    if name == "group_by" and value not in GROUP_BY_CHOICES:
        raise ConfigError(f"group_by must be one of {', '.join(GROUP_BY_CHOICES)}, got {value!r}")
    return value


def parse_app_config(raw: str) -> dict:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"KEYWORD_NEWS_CONFIG is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ConfigError("KEYWORD_NEWS_CONFIG must be a JSON object")
    return parsed


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if env is None else env
    known = {f.name for f in fields(Settings)}

    overrides: dict[str, object] = {}
    for name, var in ENV_VARS.items():
        raw = env.get(var, "")
        if str(raw).strip():
            overrides[name] = _coerce(name, raw)

    raw_config = env.get("KEYWORD_NEWS_CONFIG", "").strip()
    if raw_config:
        for key, value in parse_app_config(raw_config).items():
            if key not in known:
                print(f"  [config] Warning: ignoring unknown key '{key}'", file=sys.stderr)
                continue
            overrides[key] = _coerce(key, value)

    return replace(Settings(), **overrides)
