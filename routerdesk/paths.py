# routerdesk/paths.py
"""
Where the console keeps its files.

    <data_dir>/logs/app.log      rotating log
    <settings_dir>/app.json      non-secret settings

data_dir defaults to ./data and settings_dir to ./settings, so a checkout
runs self-contained. ROUTERDESK_DATA_DIR and ROUTERDESK_SETTINGS_DIR move
them; an explicit --data-dir beats the environment.
"""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from .constants import DEFAULT_LOG_FILENAME

DATA_DIR_ENV = "ROUTERDESK_DATA_DIR"
SETTINGS_DIR_ENV = "ROUTERDESK_SETTINGS_DIR"
SETTINGS_FILENAME = "app.json"


def _dir(explicit, env_value: Optional[str], fallback: str) -> Path:
    raw = explicit or env_value or fallback
    return Path(raw).expanduser().resolve()


@dataclass(frozen=True)
class AppPaths:
    data_dir: Path
    settings_dir: Path

    @classmethod
    def resolve(cls, data_dir=None, *, environ: Optional[Mapping[str, str]] = None) -> "AppPaths":
        env = os.environ if environ is None else environ
        return cls(
            data_dir=_dir(data_dir, env.get(DATA_DIR_ENV), "data"),
            settings_dir=_dir(None, env.get(SETTINGS_DIR_ENV), "settings"),
        )

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def log_file(self) -> Path:
        return self.logs_dir / DEFAULT_LOG_FILENAME

    @property
    def settings_file(self) -> Path:
        return self.settings_dir / SETTINGS_FILENAME

    def ensure(self) -> "AppPaths":
        """Create the directories; files are created lazily by their writers."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        return self
