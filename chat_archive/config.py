from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/chat-archive/config.json").expanduser()
DEFAULT_STATE_PATH = "~/.chat-archive/state.json"
DEFAULT_API_BASE_URL = "https://claude.ai/api"

CONFIG_ENV_OVERRIDES = {
    "db_path": "CHAT_ARCHIVE_DB_PATH",
    "state_path": "CHAT_ARCHIVE_STATE_PATH",
    "export_dir": "CHAT_ARCHIVE_EXPORT_DIR",
    "api_base_url": "CHAT_ARCHIVE_API_BASE_URL",
    "session_cookie": "CHAT_ARCHIVE_SESSION_COOKIE",
    "page_size": "CHAT_ARCHIVE_PAGE_SIZE",
    "request_timeout_s": "CHAT_ARCHIVE_REQUEST_TIMEOUT_S",
    "sync_interval_s": "CHAT_ARCHIVE_SYNC_INTERVAL_S",
    "busy_timeout_s": "CHAT_ARCHIVE_BUSY_TIMEOUT_S",
}

INT_CONFIG_KEYS = {"page_size", "request_timeout_s", "sync_interval_s", "busy_timeout_s"}
OPTIONAL_CONFIG_KEYS = {"export_dir", "session_cookie"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("CHAT_ARCHIVE_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class ArchiveConfig:
    db_path: str = "~/.chat-archive/archive.sqlite"
    state_path: str = DEFAULT_STATE_PATH
    # Export of raw conversation JSON is off until a directory is configured.
    export_dir: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    session_cookie: str | None = None
    page_size: int = 50
    request_timeout_s: int = 30
    sync_interval_s: int = 8 * 60 * 60
    busy_timeout_s: int = 5


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def load_config(path: Path | None = None) -> ArchiveConfig:
    cfg = ArchiveConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: ArchiveConfig, data: dict[str, Any]) -> ArchiveConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key in INT_CONFIG_KEYS:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if key in OPTIONAL_CONFIG_KEYS:
            text = str(value).strip() if value is not None else ""
            setattr(cfg, key, text or None)
            continue
        if value is None:
            continue
        setattr(cfg, key, str(value))
    return cfg
