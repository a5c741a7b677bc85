# routerdesk/settings.py
from __future__ import annotations
import copy, json, os
from pathlib import Path
from typing import Any, Dict
from .constants import (
    DEFAULT_LOG_MAX_BYTES, DEFAULT_LOG_BACKUP_COUNT, DEFAULT_SERVER_URL, DEFAULT_TIMEOUT, SETTINGS_SCHEMA,
)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "schema": SETTINGS_SCHEMA,
    "logging": {
        "level": "INFO",
        "max_bytes": DEFAULT_LOG_MAX_BYTES,
        "backup_count": DEFAULT_LOG_BACKUP_COUNT
    },
    "server": {
        "base_url": DEFAULT_SERVER_URL,
        "api_key": None,
        "timeout": DEFAULT_TIMEOUT
    },
    "chat": {"default_model": None},
    "ranking": {"families": ["gpt"]}
}

# env var -> (section, key)
ENV_OVERRIDES = {
    "ROUTERDESK_SERVER_URL": ("server", "base_url"),
    "ROUTERDESK_API_KEY": ("server", "api_key"),
}

def load_settings(path: Path) -> dict:
    if not path.exists():
        save_settings(path, DEFAULT_SETTINGS)
        return copy.deepcopy(DEFAULT_SETTINGS)
    with path.open("r", encoding="utf-8") as f:
        cfg = json.load(f)
    # Simple forward-fill of missing keys
    def merge(a: dict, b: dict):
        for k, v in b.items():
            if k not in a:
                a[k] = copy.deepcopy(v)
            elif isinstance(v, dict) and isinstance(a.get(k), dict):
                merge(a[k], v)
    merged = dict(cfg)
    merge(merged, DEFAULT_SETTINGS)
    return merged

def save_settings(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
    tmp.replace(path)

def apply_env_overrides(cfg: dict, environ: Dict[str, str] | None = None) -> dict:
    """Return a copy of cfg with ROUTERDESK_* environment values layered on top."""
    env = os.environ if environ is None else environ
    updated = copy.deepcopy(cfg)
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            updated.setdefault(section, {})[key] = value
    return updated

def set_default_model(path: Path, cfg: dict, model_id: str | None) -> dict:
    updated = dict(cfg)
    chat = dict(updated.get("chat", {}))
    if chat.get("default_model") != model_id:
        chat["default_model"] = model_id
        updated["chat"] = chat
        save_settings(path, updated)
    return updated
